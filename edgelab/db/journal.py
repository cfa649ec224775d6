"""In-memory trade journal backed by the data store.

Every change is applied to the local cache first and then written through
to SQLite. A failed write is logged and the change stays local until the
next successful write or :meth:`TradeJournal.sync`.
"""

import logging
import sqlite3
from datetime import date, datetime
from typing import Any, Optional

from edgelab.analytics.filters import TradeFilter
from edgelab.analytics.performance import chronological, day_summary
from edgelab.db.store import DataStore
from edgelab.models import ChatMessage, DaySummary, Trade


logger = logging.getLogger(__name__)


class TradeJournal:
    """Cached view over the trades and chat history in a DataStore."""

    def __init__(self, store: DataStore):
        self.store = store
        self._trades: dict[str, Trade] = {}
        self._messages: list[ChatMessage] = []
        self._pending: set[str] = set()
        self._pending_deletes: set[str] = set()
        self.sync()

    # ==================== Sync ====================

    def sync(self) -> None:
        """Reload from the store, retrying any local-only changes first.

        Stored rows replace cached ones with the same ID. Trades that only
        exist locally are kept, and trades deleted locally stay deleted.
        """
        for trade_id in sorted(self._pending_deletes):
            self._delete_stored(trade_id)

        for trade_id in sorted(self._pending):
            trade = self._trades.get(trade_id)
            if trade is not None:
                self._write(trade)

        try:
            stored = self.store.get_trades()
            messages = self.store.get_chat_messages()
        except sqlite3.Error as e:
            logger.warning("Could not load journal from %s: %s", self.store.db_path, e)
            return

        local_only = {tid: self._trades[tid] for tid in self._pending if tid in self._trades}
        self._trades = {t.id: t for t in stored if t.id not in self._pending_deletes}
        self._trades.update(local_only)

        known = {m.id for m in messages}
        self._messages = messages + [m for m in self._messages if m.id not in known]

    @property
    def pending(self) -> list[str]:
        """IDs of trades whose last change has not reached the store."""
        return sorted(self._pending | self._pending_deletes)

    def _write(self, trade: Trade) -> bool:
        try:
            if not self.store.update_trade(trade):
                self.store.save_trade(trade)
        except sqlite3.Error as e:
            logger.warning("Keeping trade %s local, write failed: %s", trade.id, e)
            self._pending.add(trade.id)
            return False
        self._pending.discard(trade.id)
        return True

    # ==================== Trades ====================

    def add(self, trade: Trade) -> Trade:
        """Add a trade to the journal."""
        self._trades[trade.id] = trade
        self._pending_deletes.discard(trade.id)
        self._write(trade)
        return trade

    def update(self, trade_id: str, **updates: Any) -> Trade:
        """Update fields of a trade.

        Raises:
            KeyError: If the trade is not in the journal.
        """
        current = self._trades.get(trade_id)
        if current is None:
            raise KeyError(trade_id)

        updated = Trade.model_validate(
            {**current.model_dump(), **updates, "id": trade_id, "updated_at": datetime.now()}
        )
        self._trades[trade_id] = updated
        self._write(updated)
        return updated

    def delete(self, trade_id: str) -> bool:
        """Remove a trade.

        Returns:
            True if the trade was in the journal.
        """
        existed = self._trades.pop(trade_id, None) is not None
        self._pending.discard(trade_id)
        self._delete_stored(trade_id)
        return existed

    def _delete_stored(self, trade_id: str) -> bool:
        try:
            self.store.delete_trade(trade_id)
        except sqlite3.Error as e:
            logger.warning("Keeping delete of trade %s local, write failed: %s", trade_id, e)
            self._pending_deletes.add(trade_id)
            return False
        self._pending_deletes.discard(trade_id)
        return True

    def get(self, trade_id: str) -> Optional[Trade]:
        return self._trades.get(trade_id)

    @property
    def trades(self) -> list[Trade]:
        """All trades, oldest first."""
        return chronological(self._trades.values())

    def trades_for_date(self, day: date) -> list[Trade]:
        return [t for t in self.trades if t.date == day]

    def day_summary(self, day: date) -> DaySummary:
        return day_summary(self._trades.values(), day)

    def filtered(self, trade_filter: TradeFilter) -> list[Trade]:
        return trade_filter.apply(self.trades)

    # ==================== Chat ====================

    @property
    def chat_messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def add_message(self, message: ChatMessage) -> ChatMessage:
        """Append a message to the conversation."""
        self._messages.append(message)
        try:
            self.store.save_chat_message(message)
        except sqlite3.Error as e:
            logger.warning("Keeping chat message local, write failed: %s", e)
        return message

    def clear_chat(self) -> None:
        self._messages = []
        try:
            self.store.clear_chat_messages()
        except sqlite3.Error as e:
            logger.warning("Could not clear stored chat history: %s", e)
