"""Trade list filtering."""

from collections.abc import Iterable
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from edgelab.models import Trade


class TradeFilter(BaseModel):
    """Filter state for narrowing the trade list.

    Empty lists mean "no constraint". Classifier filters (break, TP, SL and
    BE type) only reject trades that carry a different value; unclassified
    trades always pass them.
    """

    instruments: list[str] = Field(default_factory=list)
    sessions: list[str] = Field(default_factory=list)
    break_types: list[str] = Field(default_factory=list)
    tp_types: list[str] = Field(default_factory=list)
    sl_types: list[str] = Field(default_factory=list)
    be_types: list[str] = Field(default_factory=list)
    intents: list[str] = Field(default_factory=list)
    start: Optional[date] = Field(default=None, description="Inclusive start date")
    end: Optional[date] = Field(default=None, description="Inclusive end date")

    model_config = {"frozen": True}

    @property
    def is_active(self) -> bool:
        return any(
            [
                self.instruments,
                self.sessions,
                self.break_types,
                self.tp_types,
                self.sl_types,
                self.be_types,
                self.intents,
                self.start,
                self.end,
            ]
        )

    def matches(self, trade: Trade) -> bool:
        """Check whether a single trade passes the filter."""
        if self.instruments and trade.instrument not in self.instruments:
            return False
        if self.sessions and trade.session not in self.sessions:
            return False
        if self.intents and trade.intent not in self.intents:
            return False

        classifiers = (
            (self.break_types, trade.break_type),
            (self.tp_types, trade.tp_type),
            (self.sl_types, trade.sl_type),
            (self.be_types, trade.be_type),
        )
        for allowed, value in classifiers:
            if allowed and value is not None and value not in allowed:
                return False

        if self.start and trade.date < self.start:
            return False
        if self.end and trade.date > self.end:
            return False
        return True

    def apply(self, trades: Iterable[Trade]) -> list[Trade]:
        """Return the trades that pass the filter, preserving order."""
        return [t for t in trades if self.matches(t)]
