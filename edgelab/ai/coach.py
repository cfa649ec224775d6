"""Trading coach chat assistant.

Answers questions about the trader's journal. With an API key configured the
question goes to an agent primed with the journal's key metrics and trade
list; without one, :func:`local_answer` gives a keyword-routed summary
computed locally.
"""

import json
from collections.abc import Sequence
from typing import Any, Optional

from pydantic import BaseModel, Field

from edgelab.ai.base import create_agent, run_agent_sync, user_message
from edgelab.analytics.performance import (
    behavioral_split,
    format_risk_reward,
    group_by,
    summarize,
)
from edgelab.models import Citation, GroupStats, Trade


MAX_CITATIONS = 10

COACH_INSTRUCTIONS = """You are an expert trading analyst helping a trader understand their performance patterns, errors, and edge.

You have access to their complete trading journal with {total_trades} trades.

KEY METRICS:
- Total R: {total_r:.2f}R
- Win Rate: {win_rate:.1f}%
- Avg Win: {avg_win:.2f}R
- Avg Loss: {avg_loss:.2f}R
- Risk/Reward: {risk_reward}
- Planned Trades: {planned_trades} ({planned_win_rate:.1f}% win rate)
- Impulse Trades: {impulse_trades} ({impulse_win_rate:.1f}% win rate)

SESSION PERFORMANCE:
{session_lines}

STRATEGY PERFORMANCE:
Break Types: {break_types}

TP Types: {tp_types}

BE Types: {be_types}

TRADES:
{trade_list}

Your role is to:
1. Identify patterns in their trading (what works, what doesn't)
2. Surface behavioral errors (impulse trades, revenge trading, etc.)
3. Highlight their edge (where they consistently profit)
4. Provide evidence-based insights with specific trade examples
5. Build a "DNA" of their trading style - strengths, weaknesses, and patterns

Always cite specific data (trade counts, R values, win rates) and flag low-confidence conclusions when sample sizes are small (< 10 trades).

Be direct, evidence-based, and focused on actionable insights.
"""

# Keywords for routing offline answers
TP_KEYWORDS = ["tp", "take profit"]
INTENT_KEYWORDS = ["impulse", "intent"]
SESSION_KEYWORDS = ["session"]

_CONTEXT_FIELDS = {
    "id",
    "date",
    "instrument",
    "direction",
    "session",
    "size",
    "entry_price",
    "stop_loss_price",
    "take_profit_price",
    "result_r",
    "result_ticks",
    "result_dollars",
    "duration",
    "break_type",
    "tp_type",
    "sl_type",
    "be_type",
    "intent",
    "confidence_at_entry",
    "emotional_states",
    "notes",
}


class ChatReply(BaseModel):
    """An assistant answer with its supporting evidence."""

    content: str = Field(..., description="Answer text")
    citations: Citation = Field(default_factory=Citation, description="Supporting trades")

    model_config = {"frozen": True}


def confidence_for(sample_size: int) -> str:
    """Map a sample size to a confidence level."""
    if sample_size >= 20:
        return "high"
    if sample_size >= 10:
        return "medium"
    return "low"


def _signed(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.2f}R"


def _strategy_line(stats: dict[str, GroupStats]) -> str:
    if not stats:
        return "No data"
    return ", ".join(
        f"{value} ({s.trades} trades, {_signed(s.total_r)})" for value, s in stats.items()
    )


def _serialize_trades(trades: Sequence[Trade]) -> str:
    return json.dumps(
        [t.model_dump(mode="json", include=_CONTEXT_FIELDS) for t in trades],
        indent=1,
    )


def build_context(trades: Sequence[Trade]) -> str:
    """Render the coach's system prompt for a set of trades."""
    metrics = summarize(trades)
    split = behavioral_split(trades)
    sessions = group_by(trades, "session")

    session_lines = "\n".join(
        f"- {session}: {s.trades} trades, {_signed(s.total_r)}, {s.win_rate:.0f}% win rate"
        for session, s in sessions.items()
    )

    return COACH_INSTRUCTIONS.format(
        total_trades=metrics.count,
        total_r=metrics.total_r,
        win_rate=metrics.win_rate,
        avg_win=metrics.avg_win,
        avg_loss=metrics.avg_loss,
        risk_reward=format_risk_reward(metrics),
        planned_trades=split.planned.trades,
        planned_win_rate=split.planned.win_rate,
        impulse_trades=split.impulse.trades,
        impulse_win_rate=split.impulse.win_rate,
        session_lines=session_lines or "No data",
        break_types=_strategy_line(group_by(trades, "break_type")),
        tp_types=_strategy_line(group_by(trades, "tp_type")),
        be_types=_strategy_line(group_by(trades, "be_type")),
        trade_list=_serialize_trades(trades),
    )


def extract_citations(text: str, trades: Sequence[Trade]) -> Citation:
    """Cite the trades whose instrument or session the reply mentions."""
    lowered = text.lower()
    mentioned = [
        t
        for t in trades
        if t.instrument.lower() in lowered or t.session.lower() in lowered
    ]
    sample_size = len(mentioned) or len(trades)
    return Citation(
        trade_ids=[t.id for t in mentioned[:MAX_CITATIONS]],
        sample_size=sample_size,
        confidence_level=confidence_for(sample_size),
    )


def _ranked_by_avg_r(stats: dict[str, GroupStats]) -> list[tuple[str, GroupStats]]:
    return sorted(stats.items(), key=lambda item: item[1].avg_r, reverse=True)


def _answer_tp(trades: Sequence[Trade]) -> ChatReply:
    ranked = _ranked_by_avg_r(group_by(trades, "tp_type"))
    if not ranked:
        return ChatReply(
            content=(
                "I don't have enough data on TP types yet. Make sure to classify "
                "your trades with TP types to get meaningful insights."
            ),
            citations=Citation(sample_size=0, confidence_level="low"),
        )

    lines = "\n".join(
        f"{i}. **{value}**: {_signed(s.avg_r)} average ({s.trades} trades)"
        for i, (value, s) in enumerate(ranked, start=1)
    )
    classified = [t for t in trades if t.tp_type]
    return ChatReply(
        content=(
            f"Based on your trading data, here's the TP type performance breakdown:\n\n"
            f"{lines}\n\n{ranked[0][0]} shows the highest expectancy in your dataset. "
            "However, note that sample size matters - consider this more reliable "
            "if you have 20+ trades per category."
        ),
        citations=Citation(
            trade_ids=[t.id for t in classified[:MAX_CITATIONS]],
            sample_size=len(classified),
            confidence_level="high" if len(classified) >= 20 else "medium",
        ),
    )


def _answer_intent(trades: Sequence[Trade]) -> ChatReply:
    split = behavioral_split(trades)
    planned, impulse = split.planned, split.impulse

    if planned.win_rate > impulse.win_rate:
        verdict = (
            "Your planned trades significantly outperform impulse trades. This is "
            "evidence to trust your process and avoid reactive entries."
        )
    elif impulse.trades < 5:
        verdict = "Not enough impulse trade data to draw conclusions yet."
    else:
        verdict = (
            "Interestingly, your impulse trades perform similarly to planned ones. "
            "However, this could be survivor bias - impulse trades often carry more "
            "psychological risk."
        )

    return ChatReply(
        content=(
            "Here's how your trade intent affects performance:\n\n"
            f"**Planned trades**: {planned.win_rate:.0f}% win rate ({planned.trades} trades)\n"
            f"**Impulse trades**: {impulse.win_rate:.0f}% win rate ({impulse.trades} trades)\n\n"
            f"{verdict}"
        ),
        citations=Citation(
            trade_ids=[t.id for t in trades[:MAX_CITATIONS]],
            sample_size=len(trades),
            confidence_level="high" if len(trades) >= 30 else "medium",
        ),
    )


def _answer_session(trades: Sequence[Trade]) -> ChatReply:
    ranked = _ranked_by_avg_r(group_by(trades, "session"))
    lines = "\n".join(
        f"**{session}**: {_signed(s.avg_r)} average ({s.trades} trades)"
        for session, s in ranked
    )
    best = ranked[0][0] if ranked else "No data"
    return ChatReply(
        content=(
            f"Session performance breakdown:\n\n{lines}\n\n{best} is your most "
            "profitable session. Consider focusing your energy here and reducing "
            "activity in underperforming sessions."
        ),
        citations=Citation(
            trade_ids=[t.id for t in trades[:MAX_CITATIONS]],
            sample_size=len(trades),
            confidence_level="high" if len(trades) >= 20 else "medium",
        ),
    )


def local_answer(question: str, trades: Sequence[Trade]) -> ChatReply:
    """Answer a question from local statistics, without a model.

    Args:
        question: User question.
        trades: Journal trades.

    Returns:
        Reply routed by keyword: TP types, trade intent, sessions, or a
        help message listing what can be asked.
    """
    query_lower = question.lower()
    trades = list(trades)

    if any(kw in query_lower for kw in TP_KEYWORDS):
        return _answer_tp(trades)

    if any(kw in query_lower for kw in INTENT_KEYWORDS):
        return _answer_intent(trades)

    if any(kw in query_lower for kw in SESSION_KEYWORDS):
        return _answer_session(trades)

    return ChatReply(
        content=(
            f"I analyzed your {len(trades)} trades to answer your question.\n\n"
            "To give you more specific insights, try asking about:\n"
            "- TP/SL/BE type performance\n"
            "- Session-based analysis\n"
            "- Trade intent (planned vs impulse)\n"
            "- Break type patterns\n\n"
            "You can also attach chart screenshots with --image for pattern recognition."
        ),
        citations=Citation(sample_size=len(trades), confidence_level="medium"),
    )


class TradingCoach:
    """Chat assistant grounded in the trade journal."""

    def __init__(self, model: Optional[str] = None):
        self.model = model

    def ask(
        self,
        question: str,
        trades: Sequence[Trade],
        images: Optional[list[dict[str, Any]]] = None,
    ) -> ChatReply:
        """Answer a question about the journal.

        Args:
            question: User question.
            trades: Trades to ground the answer in.
            images: Optional ``input_image`` parts to attach.

        Returns:
            The reply with citations extracted from its text.
        """
        if not question.strip():
            raise ValueError("No message provided")

        trades = list(trades)
        agent = create_agent(
            name="Trading Coach",
            instructions=build_context(trades),
            model=self.model,
        )
        text = run_agent_sync(agent, user_message(f"User Question: {question}", images))
        return ChatReply(content=text, citations=extract_citations(text, trades))
