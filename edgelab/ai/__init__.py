"""AI assistants for EdgeLab.

This module provides:
- ChartAnalyzer: Classifies chart screenshots with a vision model
- TradingCoach: Answers questions about the trade journal
"""

from edgelab.ai.base import (
    configure_api_key,
    create_agent,
    get_api_key,
    get_model,
    run_agent_sync,
)
from edgelab.ai.coach import ChatReply, TradingCoach, build_context, local_answer
from edgelab.ai.vision import ChartAnalyzer, ImageTooLargeError, parse_analysis

__all__ = [
    # Base utilities
    "configure_api_key",
    "create_agent",
    "get_api_key",
    "get_model",
    "run_agent_sync",
    # Assistants
    "ChartAnalyzer",
    "ChatReply",
    "TradingCoach",
    # Utility functions
    "build_context",
    "local_answer",
    "parse_analysis",
    "ImageTooLargeError",
]
