"""Trading performance aggregation.

Every function here is a pure reduction over an in-memory list of trades:
no I/O, no hidden state, identical output for identical input. Empty input
always yields zeroed results.

Profit factor convention: ``None`` stands for an unbounded edge (gross loss
of zero with a positive gross profit). When both gross profit and gross loss
are zero the profit factor is ``0.0``. Use :func:`format_profit_factor` to
display it.
"""

import calendar
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any, Optional, Union

from edgelab.models import (
    BehavioralSplit,
    CalendarDay,
    DaySummary,
    GroupStats,
    IntentStats,
    Metrics,
    MonthSummary,
    StrategyPerformance,
    Trade,
)


KeyFunc = Callable[[Trade], Optional[str]]

# Classifier fields exposed as group-by breakdowns, keyed by wire name.
GROUP_FIELDS: dict[str, str] = {
    "session": "session",
    "breakType": "break_type",
    "tpType": "tp_type",
    "slType": "sl_type",
    "beType": "be_type",
}

STRATEGY_FIELDS = ("break_type", "tp_type", "sl_type", "be_type")

INFINITE_EDGE = "∞"


def _win_rate(wins: int, total: int) -> float:
    return wins / total * 100 if total > 0 else 0.0


def summarize(trades: Iterable[Trade]) -> Metrics:
    """Calculate summary metrics for a collection of trades.

    Args:
        trades: Trades to summarize, in any order.

    Returns:
        Metrics with win rate as a percentage and losses as positive
        magnitudes. All fields are zero for an empty collection.
    """
    trades = list(trades)
    count = len(trades)

    if count == 0:
        return Metrics()

    winners = [t.result_r for t in trades if t.result_r > 0]
    losers = [t.result_r for t in trades if t.result_r < 0]

    total_r = sum((t.result_r for t in trades), 0.0)
    gross_profit = sum(winners, 0.0)
    gross_loss = abs(sum(losers, 0.0))

    win_rate = _win_rate(len(winners), count)
    avg_win = gross_profit / len(winners) if winners else 0.0
    avg_loss = gross_loss / len(losers) if losers else 0.0

    if gross_loss > 0:
        profit_factor: Optional[float] = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = None
    else:
        profit_factor = 0.0

    win_fraction = win_rate / 100
    expectancy = win_fraction * avg_win - (1 - win_fraction) * avg_loss

    return Metrics(
        count=count,
        total_r=total_r,
        avg_r=total_r / count,
        win_rate=win_rate,
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=profit_factor,
        expectancy=expectancy,
        wins=len(winners),
        losses=len(losers),
    )


def _key_func(key: Union[str, KeyFunc]) -> KeyFunc:
    if callable(key):
        return key
    return lambda trade: getattr(trade, key)


def group_by(
    trades: Iterable[Trade], key: Union[str, KeyFunc]
) -> dict[str, GroupStats]:
    """Partition trades by a classifier value.

    Trades whose classifier is missing are left out of every bucket rather
    than collected under a synthetic key.

    Args:
        trades: Trades to partition.
        key: Trade field name (e.g. ``"session"``, ``"tp_type"``) or a
            callable returning the bucket key for a trade.

    Returns:
        Mapping of classifier value to GroupStats, in order of first
        appearance.
    """
    get_key = _key_func(key)
    buckets: dict[str, list[float]] = {}

    for trade in trades:
        value = get_key(trade)
        if value is None or value == "":
            continue
        buckets.setdefault(str(value), []).append(trade.result_r)

    return {
        value: GroupStats(
            trades=len(results),
            total_r=sum(results, 0.0),
            wins=sum(1 for r in results if r > 0),
        )
        for value, results in buckets.items()
    }


def _intent_stats(trades: list[Trade]) -> IntentStats:
    wins = sum(1 for t in trades if t.is_win)
    return IntentStats(trades=len(trades), wins=wins, win_rate=_win_rate(wins, len(trades)))


def behavioral_split(trades: Iterable[Trade]) -> BehavioralSplit:
    """Split trades into planned and everything else.

    Only the intent ``"Planned"`` counts as planned; Impulse, Revenge and
    Boredom all fall on the impulse side.
    """
    trades = list(trades)
    planned = [t for t in trades if t.intent == "Planned"]
    impulse = [t for t in trades if t.intent != "Planned"]
    return BehavioralSplit(planned=_intent_stats(planned), impulse=_intent_stats(impulse))


def max_drawdown(trades: Iterable[Trade]) -> float:
    """Largest peak-to-trough drop of cumulative R, in the given order.

    The running peak starts at zero, so a losing first trade counts as
    drawdown.

    Returns:
        Drawdown as a positive R value, 0.0 when there is none.
    """
    running = 0.0
    peak = 0.0
    drawdown = 0.0

    for trade in trades:
        running += trade.result_r
        peak = max(peak, running)
        drawdown = min(drawdown, running - peak)

    return abs(drawdown)


def chronological(trades: Iterable[Trade]) -> list[Trade]:
    """Sort trades by entry date and time."""
    return sorted(trades, key=lambda t: (t.date, t.time))


def day_summary(trades: Iterable[Trade], day: date) -> DaySummary:
    """Summarize the trades taken on a single calendar day.

    Args:
        trades: Journal trades (any dates).
        day: Day to summarize.

    Returns:
        DaySummary with the day's trades in time order.
    """
    day_trades = chronological(t for t in trades if t.date == day)
    metrics = summarize(day_trades)

    return DaySummary(
        date=day,
        trades=day_trades,
        total_r=metrics.total_r,
        avg_r=metrics.avg_r,
        win_rate=metrics.win_rate,
        max_drawdown=max_drawdown(day_trades),
        trade_count=metrics.count,
    )


def month_summary(trades: Iterable[Trade], year: int, month: int) -> MonthSummary:
    """Roll trades up per day for a calendar month.

    Every day of the month gets a cell, including days without trades.
    A trade that did not finish above zero R counts as a loss.

    Raises:
        ValueError: If month is not in 1..12.
    """
    _, days_in_month = calendar.monthrange(year, month)
    buckets: dict[date, list[float]] = {
        date(year, month, d): [] for d in range(1, days_in_month + 1)
    }
    for trade in trades:
        if trade.date in buckets:
            buckets[trade.date].append(trade.result_r)

    days = []
    for day, results in buckets.items():
        wins = sum(1 for r in results if r > 0)
        days.append(CalendarDay(
            date=day,
            trade_count=len(results),
            total_r=sum(results),
            wins=wins,
            losses=len(results) - wins,
        ))

    return MonthSummary(
        year=year,
        month=month,
        days=days,
        total_r=sum(d.total_r for d in days),
        trade_count=sum(d.trade_count for d in days),
    )


def strategy_performance(
    trades: Iterable[Trade], field: str
) -> list[StrategyPerformance]:
    """Performance per value of a trade-management classifier.

    Args:
        trades: Trades to analyze.
        field: One of ``break_type``, ``tp_type``, ``sl_type``, ``be_type``.

    Returns:
        One entry per classifier value, best expectancy first.
    """
    if field not in STRATEGY_FIELDS:
        raise ValueError(f"Unsupported strategy field: {field}")

    by_value: dict[str, list[Trade]] = {}
    for trade in chronological(trades):
        value = getattr(trade, field)
        if value is not None:
            by_value.setdefault(value, []).append(trade)

    results = []
    for value, subset in by_value.items():
        metrics = summarize(subset)
        results.append(
            StrategyPerformance(
                group_by=field,
                value=value,
                sample_size=metrics.count,
                win_rate=metrics.win_rate,
                avg_r=metrics.avg_r,
                expectancy=metrics.expectancy,
                max_drawdown=max_drawdown(subset),
            )
        )

    return sorted(results, key=lambda p: p.expectancy, reverse=True)


def session_performance(trades: Iterable[Trade]) -> list[tuple[str, GroupStats]]:
    """Session breakdown ordered by total R, best first."""
    stats = group_by(trades, "session")
    return sorted(stats.items(), key=lambda item: item[1].total_r, reverse=True)


def format_profit_factor(value: Optional[float]) -> str:
    """Render a profit factor, using the infinity sign for an unbounded edge."""
    if value is None:
        return INFINITE_EDGE
    return f"{value:.2f}"


def format_risk_reward(metrics: Metrics) -> str:
    """Render average win to average loss as ``1:x``."""
    if metrics.avg_loss > 0:
        return f"1:{metrics.avg_win / metrics.avg_loss:.2f}"
    return f"1:{INFINITE_EDGE}"


def _group_payload(stats: dict[str, GroupStats]) -> dict[str, dict[str, Any]]:
    return {
        value: {"trades": s.trades, "totalR": s.total_r, "wins": s.wins}
        for value, s in stats.items()
    }


def metrics_payload(trades: Iterable[Trade]) -> dict[str, Any]:
    """Build the JSON-ready metrics document for a trade collection.

    The unbounded profit factor is emitted as ``None`` (JSON ``null``).
    """
    trades = list(trades)
    metrics = summarize(trades)

    return {
        "count": metrics.count,
        "totalR": metrics.total_r,
        "avgR": metrics.avg_r,
        "winRate": metrics.win_rate,
        "avgWin": metrics.avg_win,
        "avgLoss": metrics.avg_loss,
        "profitFactor": metrics.profit_factor,
        "expectancy": metrics.expectancy,
        "groups": {
            wire_name: _group_payload(group_by(trades, field))
            for wire_name, field in GROUP_FIELDS.items()
        },
    }
