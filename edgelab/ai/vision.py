"""Chart screenshot classification.

Sends a screenshot to a vision-capable model and turns the reply into a
ChartAnalysis that can back-fill a trade's classification.
"""

import json
import logging
import mimetypes
import re
from pathlib import Path
from typing import Optional

from edgelab.ai.base import create_agent, image_input, run_agent_sync, user_message
from edgelab.models import ChartAnalysis


logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 20 * 1024 * 1024

CHART_PROMPT = """Analyze this trading chart screenshot and extract the following information in JSON format:
{
  "breakType": "Range Break" | "Liquidity Sweep" | "Trend Continuation" | "Failed Break" | "Reversal Break" | null,
  "tpType": "Fixed TP" | "Runner" | "Partial + Runner" | "Scalp TP" | "HTF Target" | null,
  "slType": "Fixed SL" | "ATR SL" | "Structure SL" | "Mental SL" | null,
  "beType": "No BE" | "Standard BE" | "Smart BE" | "Trailing BE" | null,
  "session": "Asia" | "London" | "NY AM" | "NY PM" | null,
  "marketStructure": "Bullish" | "Bearish" | "Ranging" | "Choppy" | null,
  "entryStyle": "Limit" | "Market" | "Stop" | null,
  "htfLtfAlignment": "Aligned" | "Neutral" | "Contrary" | null,
  "notes": "Any additional observations about the trade setup"
}

Focus on identifying:
- Break type: What kind of price action break is visible
- TP/SL/BE logic: How the trade was managed
- Market structure: Overall trend and structure
- Session context: Time of day patterns
- Entry style: How the trade was entered

Return ONLY valid JSON, no markdown formatting."""

VISION_INSTRUCTIONS = """You are a trading chart analyst. You read screenshots of
futures charts and classify the trade setup shown using only the labels you are
given. Use null for anything the chart does not show clearly."""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ImageTooLargeError(ValueError):
    """Raised when an image exceeds the size the vision model accepts."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(
            f"File too large: {size / (1024 * 1024):.2f}MB. Maximum size is 20MB."
        )


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or "image/png"


def parse_analysis(text: str) -> ChartAnalysis:
    """Parse a model reply into a ChartAnalysis.

    Uses the outermost ``{...}`` block in the reply. A reply without one is
    kept whole as the notes with every label left empty.

    Raises:
        ValueError: If the JSON block cannot be decoded.
    """
    match = _JSON_OBJECT.search(text)
    if not match:
        return ChartAnalysis(notes=text)

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse chart analysis: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Chart analysis is not a JSON object")

    return ChartAnalysis.model_validate(data)


class ChartAnalyzer:
    """Classify chart screenshots with a vision model."""

    def __init__(self, model: Optional[str] = None):
        self.agent = create_agent(
            name="Chart Analyzer",
            instructions=VISION_INSTRUCTIONS,
            model=model,
        )

    def analyze_bytes(self, data: bytes, mime_type: str = "image/png") -> ChartAnalysis:
        """Classify an in-memory image.

        Raises:
            ImageTooLargeError: If the image is over 20 MB.
        """
        if len(data) > MAX_IMAGE_BYTES:
            raise ImageTooLargeError(len(data))

        message = user_message(CHART_PROMPT, [image_input(data, mime_type)])
        reply = run_agent_sync(self.agent, message)
        logger.debug("Vision reply: %s", reply)
        return parse_analysis(reply)

    def analyze_file(self, path: Path) -> ChartAnalysis:
        """Classify an image file."""
        path = Path(path)
        size = path.stat().st_size
        if size > MAX_IMAGE_BYTES:
            raise ImageTooLargeError(size)
        return self.analyze_bytes(path.read_bytes(), guess_mime_type(path))
