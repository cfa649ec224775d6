"""Performance analytics for the trade journal."""

from edgelab.analytics.filters import TradeFilter
from edgelab.analytics.performance import (
    behavioral_split,
    day_summary,
    format_profit_factor,
    group_by,
    max_drawdown,
    metrics_payload,
    month_summary,
    session_performance,
    strategy_performance,
    summarize,
)
from edgelab.analytics.sessions import infer_session

__all__ = [
    "TradeFilter",
    "behavioral_split",
    "day_summary",
    "format_profit_factor",
    "group_by",
    "infer_session",
    "max_drawdown",
    "metrics_payload",
    "month_summary",
    "session_performance",
    "strategy_performance",
    "summarize",
]
