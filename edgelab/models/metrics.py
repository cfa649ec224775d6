"""Derived performance metric models.

These are recomputed from the trade list on demand and never persisted.
"""

from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, Field

from edgelab.models.trade import Trade


class Metrics(BaseModel):
    """Summary statistics for a collection of trades.

    ``profit_factor`` is None when gross loss is zero and gross profit is
    positive (an unbounded edge).
    """

    count: int = Field(default=0, ge=0, description="Number of trades")
    total_r: float = Field(default=0.0, description="Sum of R results")
    avg_r: float = Field(default=0.0, description="Mean R per trade")
    win_rate: float = Field(default=0.0, ge=0, le=100, description="Win rate percentage")
    avg_win: float = Field(default=0.0, ge=0, description="Mean R of winning trades")
    avg_loss: float = Field(
        default=0.0, ge=0, description="Mean absolute R of losing trades"
    )
    profit_factor: Optional[float] = Field(
        default=0.0, ge=0, description="Gross profit / gross loss"
    )
    expectancy: float = Field(default=0.0, description="Expected R per trade")
    wins: int = Field(default=0, ge=0, description="Winning trades")
    losses: int = Field(default=0, ge=0, description="Losing trades")

    model_config = {"frozen": True}

    @property
    def has_infinite_edge(self) -> bool:
        return self.profit_factor is None


class GroupStats(BaseModel):
    """Per-bucket statistics for a group-by breakdown."""

    trades: int = Field(default=0, ge=0, description="Trades in the bucket")
    total_r: float = Field(default=0.0, description="Sum of R results")
    wins: int = Field(default=0, ge=0, description="Winning trades")

    model_config = {"frozen": True}

    @property
    def avg_r(self) -> float:
        return self.total_r / self.trades if self.trades > 0 else 0.0

    @property
    def win_rate(self) -> float:
        return self.wins / self.trades * 100 if self.trades > 0 else 0.0


class IntentStats(BaseModel):
    """Win statistics for one side of the behavioral split."""

    trades: int = Field(default=0, ge=0, description="Trades in the partition")
    wins: int = Field(default=0, ge=0, description="Winning trades")
    win_rate: float = Field(default=0.0, ge=0, le=100, description="Win rate percentage")

    model_config = {"frozen": True}


class BehavioralSplit(BaseModel):
    """Planned trades versus every other intent."""

    planned: IntentStats = Field(default_factory=IntentStats)
    impulse: IntentStats = Field(default_factory=IntentStats)

    model_config = {"frozen": True}


class DaySummary(BaseModel):
    """Calendar-day roll-up of trades."""

    date: date_type = Field(..., description="Summarized date")
    trades: list[Trade] = Field(default_factory=list, description="Trades on the date")
    total_r: float = Field(default=0.0, description="Sum of R results")
    avg_r: float = Field(default=0.0, description="Mean R per trade")
    win_rate: float = Field(default=0.0, ge=0, le=100, description="Win rate percentage")
    max_drawdown: float = Field(default=0.0, ge=0, description="Largest intraday R drawdown")
    trade_count: int = Field(default=0, ge=0, description="Number of trades")

    model_config = {"frozen": True}


class StrategyPerformance(BaseModel):
    """Aggregate performance for one value of a classifier field."""

    group_by: str = Field(..., description="Classifier field name")
    value: str = Field(..., description="Classifier value")
    sample_size: int = Field(..., ge=0, description="Trades with this value")
    win_rate: float = Field(..., ge=0, le=100, description="Win rate percentage")
    avg_r: float = Field(..., description="Mean R per trade")
    expectancy: float = Field(..., description="Expected R per trade")
    max_drawdown: float = Field(..., ge=0, description="Largest R drawdown")

    model_config = {"frozen": True}


class CalendarDay(BaseModel):
    """One cell of the month calendar."""

    date: date_type = Field(..., description="Calendar date")
    trade_count: int = Field(default=0, ge=0, description="Number of trades")
    total_r: float = Field(default=0.0, description="Sum of R results")
    wins: int = Field(default=0, ge=0, description="Winning trades")
    losses: int = Field(default=0, ge=0, description="Trades that did not win")

    model_config = {"frozen": True}


class MonthSummary(BaseModel):
    """Per-day roll-up of a calendar month."""

    year: int = Field(..., description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month")
    days: list[CalendarDay] = Field(default_factory=list, description="Every day of the month")
    total_r: float = Field(default=0.0, description="Sum of R results for the month")
    trade_count: int = Field(default=0, ge=0, description="Number of trades in the month")

    model_config = {"frozen": True}

    def day(self, day: date_type) -> Optional[CalendarDay]:
        """Look up the cell for a date in this month."""
        if (day.year, day.month) != (self.year, self.month):
            return None
        return self.days[day.day - 1]
