"""Screenshot and chart analysis data models."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from edgelab.models.trade import (
    BE_TYPES,
    BREAK_TYPES,
    CLASSIFICATION_FIELDS,
    SESSIONS,
    SL_TYPES,
    TP_TYPES,
    BEType,
    BreakType,
    Session,
    SLType,
    TPType,
    new_id,
)


ScreenshotType = Literal["chart", "dom", "markup", "other"]

MarketStructure = Literal["Bullish", "Bearish", "Ranging", "Choppy"]
EntryStyle = Literal["Limit", "Market", "Stop"]
Alignment = Literal["Aligned", "Neutral", "Contrary"]

_VOCABULARIES: dict[str, tuple[str, ...]] = {
    "break_type": BREAK_TYPES,
    "tp_type": TP_TYPES,
    "sl_type": SL_TYPES,
    "be_type": BE_TYPES,
    "session": SESSIONS,
    "market_structure": ("Bullish", "Bearish", "Ranging", "Choppy"),
    "entry_style": ("Limit", "Market", "Stop"),
    "htf_ltf_alignment": ("Aligned", "Neutral", "Contrary"),
}


class ChartAnalysis(BaseModel):
    """Classification extracted from a chart screenshot.

    Accepts the camelCase keys returned by the vision model. Values outside
    the known vocabulary are dropped to None instead of failing validation.
    """

    break_type: Optional[BreakType] = Field(default=None, alias="breakType")
    tp_type: Optional[TPType] = Field(default=None, alias="tpType")
    sl_type: Optional[SLType] = Field(default=None, alias="slType")
    be_type: Optional[BEType] = Field(default=None, alias="beType")
    session: Optional[Session] = Field(default=None)
    market_structure: Optional[MarketStructure] = Field(
        default=None, alias="marketStructure"
    )
    entry_style: Optional[EntryStyle] = Field(default=None, alias="entryStyle")
    htf_ltf_alignment: Optional[Alignment] = Field(
        default=None, alias="htfLtfAlignment"
    )
    notes: Optional[str] = Field(default=None)

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator(*_VOCABULARIES.keys(), mode="before")
    @classmethod
    def drop_unknown_labels(cls, value: Any, info: ValidationInfo) -> Optional[str]:
        """Coerce labels the model invented to None."""
        if value is None:
            return None
        allowed = _VOCABULARIES[info.field_name]
        text = str(value).strip()
        return text if text in allowed else None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def classification(self) -> dict[str, str]:
        """Non-null classification fields keyed by trade field name."""
        return {
            name: getattr(self, name)
            for name in CLASSIFICATION_FIELDS
            if getattr(self, name) is not None
        }

    def to_wire(self) -> dict[str, Optional[str]]:
        """Serialize with the camelCase keys used on the wire."""
        return self.model_dump(by_alias=True)


class TradeScreenshot(BaseModel):
    """A chart screenshot, optionally linked to a trade."""

    id: str = Field(default_factory=new_id, description="Screenshot identifier")
    trade_id: Optional[str] = Field(default=None, description="Linked trade ID")
    url: str = Field(..., min_length=1, description="Stored file location")
    filename: str = Field(..., min_length=1, description="Original filename")
    file_size: Optional[int] = Field(default=None, ge=0, description="Size in bytes")
    mime_type: Optional[str] = Field(default=None, description="Image MIME type")
    type: ScreenshotType = Field(default="chart", description="Screenshot kind")
    uploaded_at: datetime = Field(
        default_factory=datetime.now, description="Upload timestamp"
    )
    ai_processed: bool = Field(default=False, description="Whether AI analysis ran")
    ai_extracted_data: Optional[ChartAnalysis] = Field(
        default=None, description="AI-extracted classification"
    )

    model_config = {"frozen": True}
