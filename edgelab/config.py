"""Configuration loading for EdgeLab.

Settings live in ``~/.config/edgelab/config.toml``. Set ``EDGELAB_HOME`` to
use a different directory.
"""

import os
from pathlib import Path
from typing import Any, Optional

import toml


DEFAULT_MODEL = "gpt-4o"


def get_config_dir() -> Path:
    """Get the configuration directory."""
    override = os.environ.get("EDGELAB_HOME")
    if override:
        return Path(override)
    return Path.home() / ".config" / "edgelab"


def get_config_path() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.toml"


def load_config() -> Optional[dict[str, Any]]:
    """Load the configuration file.

    Returns:
        Config dict, or None if the file is missing or unreadable.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return None

    try:
        return toml.load(config_path)
    except (toml.TomlDecodeError, OSError):
        return None


def create_template_config() -> Path:
    """Write a template configuration file.

    Returns:
        Path of the written file.
    """
    config_dir = get_config_dir()
    config_path = config_dir / "config.toml"

    config_dir.mkdir(parents=True, exist_ok=True)

    template = {
        "openai": {
            "api_key": "",  # Leave empty to use OPENAI_API_KEY env var
            "model": DEFAULT_MODEL,
        },
        "journal": {
            "db_path": "",  # Defaults to edgelab.db next to this file
            "screenshot_dir": "",  # Defaults to screenshots/ next to this file
            "timezone": "America/New_York",
        },
        "waveform": {
            "fps": 30,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path


def _section(config: Optional[dict], name: str) -> dict:
    return (config or {}).get(name, {}) or {}


def get_db_path(config: Optional[dict] = None) -> Path:
    """Get the journal database path."""
    configured = _section(config, "journal").get("db_path")
    if configured:
        return Path(configured).expanduser()
    return get_config_dir() / "edgelab.db"


def get_screenshot_dir(config: Optional[dict] = None) -> Path:
    """Get the directory screenshots are copied into."""
    configured = _section(config, "journal").get("screenshot_dir")
    if configured:
        return Path(configured).expanduser()
    return get_config_dir() / "screenshots"


def get_timezone(config: Optional[dict] = None) -> str:
    """Get the time zone trade times are recorded in."""
    return _section(config, "journal").get("timezone") or "America/New_York"


def get_openai_key(config: Optional[dict] = None) -> Optional[str]:
    """Get the OpenAI API key, config first then environment."""
    key = _section(config, "openai").get("api_key")
    if key and key != "your-openai-api-key":
        return key
    return os.environ.get("OPENAI_API_KEY") or None


def get_openai_model(config: Optional[dict] = None) -> str:
    """Get the model name, environment first then config."""
    return (
        os.environ.get("OPENAI_MODEL")
        or _section(config, "openai").get("model")
        or DEFAULT_MODEL
    )


def get_waveform_fps(config: Optional[dict] = None) -> int:
    """Get the waveform frame rate."""
    return int(_section(config, "waveform").get("fps") or 30)
