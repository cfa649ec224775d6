"""Base utilities for AI agents.

This module provides common utilities for creating and running AI agents
using the OpenAI Agents SDK.
"""

import base64
import logging
import os
from typing import Any, Optional, Union

# Disable tracing to avoid noisy 503 errors from telemetry
os.environ.setdefault("OPENAI_AGENTS_DISABLE_TRACING", "1")

from agents import Agent, Runner, set_default_openai_key

from edgelab.config import get_openai_key, get_openai_model, load_config


logger = logging.getLogger(__name__)

# Either a plain prompt or a list of Responses-API input items
AgentInput = Union[str, list[dict[str, Any]]]


def get_model(config: Optional[dict] = None) -> str:
    """Get the model to use for agents.

    Checks OPENAI_MODEL environment variable, then the config file.

    Returns:
        Model name string.
    """
    return get_openai_model(config if config is not None else load_config())


def get_api_key(config: Optional[dict] = None) -> Optional[str]:
    """Get the OpenAI API key.

    Returns:
        API key string or None if not configured.
    """
    return get_openai_key(config if config is not None else load_config())


def configure_api_key(config: Optional[dict] = None) -> bool:
    """Hand the configured API key to the Agents SDK.

    Returns:
        True if a key is available.
    """
    key = get_api_key(config)
    if not key:
        return False
    set_default_openai_key(key)
    return True


def create_agent(
    name: str,
    instructions: str,
    model: Optional[str] = None,
) -> Agent:
    """Create an AI agent with the specified configuration.

    Args:
        name: Name of the agent.
        instructions: System instructions for the agent.
        model: Optional model override. Uses default if not specified.

    Returns:
        Configured Agent instance.
    """
    agent_model = model or get_model()

    return Agent(
        name=name,
        instructions=instructions,
        model=agent_model,
    )


def image_input(data: bytes, mime_type: str = "image/png") -> dict[str, Any]:
    """Build an ``input_image`` content part from raw image bytes."""
    encoded = base64.b64encode(data).decode("ascii")
    return {
        "type": "input_image",
        "image_url": f"data:{mime_type};base64,{encoded}",
        "detail": "auto",
    }


def user_message(text: str, images: Optional[list[dict[str, Any]]] = None) -> AgentInput:
    """Build the agent input for a user turn.

    Plain text stays a string. With images attached the turn becomes a
    single user message holding the text part followed by the image parts.
    """
    if not images:
        return text
    return [
        {
            "role": "user",
            "content": [{"type": "input_text", "text": text}, *images],
        }
    ]


def _log_agent_call(agent: Agent) -> None:
    """Log agent call info to terminal.

    Args:
        agent: The agent being called.
    """
    from rich.console import Console

    console = Console(stderr=True)
    console.print(f"[dim]🤖 Agent: {agent.name} | Model: {agent.model}[/dim]")
    logger.debug("Running agent %s on %s", agent.name, agent.model)


def run_agent_sync(
    agent: Agent,
    message: AgentInput,
    context: Optional[dict[str, Any]] = None,
) -> str:
    """Run an agent synchronously and return the response.

    Args:
        agent: The agent to run.
        message: User message, or a list of input items with images.
        context: Optional context dictionary to pass to the agent.

    Returns:
        Agent's response as a string.
    """
    _log_agent_call(agent)
    result = Runner.run_sync(agent, message, context=context)
    return str(result.final_output or "")
