"""Trade data model and its categorical vocabularies."""

import uuid
from datetime import date as date_type
from datetime import datetime
from typing import Literal, Optional, get_args

from pydantic import BaseModel, Field


Instrument = Literal["ES", "NQ", "RTY", "GC", "CL", "YM", "ZB", "ZN"]

Session = Literal["Asia", "London", "NY AM", "NY PM"]

Direction = Literal["Long", "Short"]

TradeIntent = Literal["Planned", "Impulse", "Revenge", "Boredom"]

EmotionalState = Literal[
    "Calm",
    "Anxious",
    "Confident",
    "Fearful",
    "FOMO",
    "Frustrated",
    "Focused",
    "Tired",
    "Rushed",
]

TPType = Literal["Fixed TP", "Runner", "Partial + Runner", "Scalp TP", "HTF Target"]

# Form labels plus the labels the chart classifier is prompted with.
SLType = Literal[
    "Fixed SL",
    "Structural SL",
    "Volatility-based SL",
    "Time-based SL",
    "ATR SL",
    "Structure SL",
    "Mental SL",
]

BEType = Literal["No BE", "Standard BE", "Smart BE", "Trailing BE"]

BreakType = Literal[
    "Range Break",
    "Liquidity Sweep",
    "Trend Continuation",
    "Failed Break",
    "Reversal Break",
]

BreakAlignment = Literal["HTF Aligned", "Counter HTF"]


INSTRUMENTS: tuple[str, ...] = get_args(Instrument)
SESSIONS: tuple[str, ...] = get_args(Session)
DIRECTIONS: tuple[str, ...] = get_args(Direction)
INTENTS: tuple[str, ...] = get_args(TradeIntent)
EMOTIONAL_STATES: tuple[str, ...] = get_args(EmotionalState)
TP_TYPES: tuple[str, ...] = get_args(TPType)
SL_TYPES: tuple[str, ...] = get_args(SLType)
BE_TYPES: tuple[str, ...] = get_args(BEType)
BREAK_TYPES: tuple[str, ...] = get_args(BreakType)
BREAK_ALIGNMENTS: tuple[str, ...] = get_args(BreakAlignment)

# Fields that automated screenshot analysis is allowed to back-fill.
CLASSIFICATION_FIELDS = ("break_type", "tp_type", "sl_type", "be_type", "session")


def new_id() -> str:
    """Generate a new record identifier."""
    return uuid.uuid4().hex


class Trade(BaseModel):
    """Represents a single discretionary trade in the journal."""

    id: str = Field(default_factory=new_id, description="Trade identifier")

    # Manual fields
    instrument: Instrument = Field(..., description="Futures instrument")
    date: date_type = Field(..., description="Trade date")
    time: str = Field(
        ..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Entry time (HH:MM)"
    )
    session: Session = Field(..., description="Trading session")
    direction: Direction = Field(..., description="Trade direction")
    size: int = Field(default=1, gt=0, description="Contracts traded")
    entry_price: float = Field(default=0.0, ge=0, description="Entry price")
    stop_loss_price: Optional[float] = Field(
        default=None, ge=0, description="Stop loss price"
    )
    take_profit_price: Optional[float] = Field(
        default=None, ge=0, description="Take profit price"
    )
    result_r: float = Field(..., description="Signed result in R multiples")
    result_ticks: Optional[int] = Field(default=None, description="Result in ticks")
    result_dollars: Optional[float] = Field(
        default=None, description="Result in dollars"
    )
    duration: Optional[int] = Field(
        default=None, ge=0, description="Holding time in minutes"
    )

    # Behavioral fields
    intent: TradeIntent = Field(default="Planned", description="Trade intent")
    confidence_at_entry: Optional[int] = Field(
        default=None, ge=1, le=5, description="Confidence at entry (1-5)"
    )
    emotional_states: list[EmotionalState] = Field(
        default_factory=list, description="Emotional states during the trade"
    )

    # Classification (manual or AI-detected)
    tp_type: Optional[TPType] = Field(default=None, description="Take profit style")
    sl_type: Optional[SLType] = Field(default=None, description="Stop loss style")
    be_type: Optional[BEType] = Field(default=None, description="Break-even style")
    break_type: Optional[BreakType] = Field(default=None, description="Price break type")
    break_alignment: Optional[BreakAlignment] = Field(
        default=None, description="Higher-timeframe alignment"
    )

    notes: Optional[str] = Field(default=None, description="Free-form notes")
    tags: list[str] = Field(default_factory=list, description="User tags")

    created_at: datetime = Field(
        default_factory=datetime.now, description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now, description="Last update timestamp"
    )

    model_config = {"frozen": True}

    @property
    def is_win(self) -> bool:
        """A trade is a win when its R result is positive."""
        return self.result_r > 0
