"""Chat message data models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from edgelab.models.trade import new_id


ConfidenceLevel = Literal["high", "medium", "low"]


class Citation(BaseModel):
    """Evidence attached to an assistant reply."""

    trade_ids: list[str] = Field(
        default_factory=list, max_length=10, description="Cited trade IDs"
    )
    sample_size: int = Field(default=0, ge=0, description="Trades behind the answer")
    confidence_level: ConfidenceLevel = Field(
        default="low", description="Confidence in the conclusion"
    )

    model_config = {"frozen": True}


class ChatMessage(BaseModel):
    """A single message in the assistant conversation."""

    id: str = Field(default_factory=new_id, description="Message identifier")
    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Message timestamp"
    )
    citations: Optional[Citation] = Field(
        default=None, description="Citations for assistant replies"
    )

    model_config = {"frozen": True}
