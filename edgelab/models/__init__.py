"""Data models for EdgeLab."""

from edgelab.models.trade import Trade
from edgelab.models.screenshot import ChartAnalysis, TradeScreenshot
from edgelab.models.chat import ChatMessage, Citation
from edgelab.models.metrics import (
    BehavioralSplit,
    CalendarDay,
    DaySummary,
    GroupStats,
    IntentStats,
    Metrics,
    MonthSummary,
    StrategyPerformance,
)

__all__ = [
    "Trade",
    "ChartAnalysis",
    "TradeScreenshot",
    "ChatMessage",
    "Citation",
    "BehavioralSplit",
    "CalendarDay",
    "DaySummary",
    "GroupStats",
    "IntentStats",
    "Metrics",
    "MonthSummary",
    "StrategyPerformance",
]
