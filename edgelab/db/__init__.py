"""Database layer for EdgeLab."""

from edgelab.db.store import DataStore
from edgelab.db.journal import TradeJournal

__all__ = ["DataStore", "TradeJournal"]
