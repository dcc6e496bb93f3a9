"""
Configuration management for Content Agents.
"""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .logging import get_logger

logger = get_logger(__name__)


class ProactiveConfig(BaseModel):
    """Timing and threshold knobs for the proactive trigger engine."""
    debounce_seconds: float = Field(default=3.0, ge=0.0)
    claim_window_seconds: float = Field(default=30.0, gt=0.0)
    scheduler_cooldown_seconds: float = Field(default=3600.0, ge=0.0)
    scheduler_min_items: int = Field(default=5, ge=0)


class ClaudeConfig(BaseModel):
    """Configuration for the content generation API."""
    api_url: str = Field(default="https://api.anthropic.com/v1/messages")
    api_version: str = Field(default="2023-06-01")
    model: str = Field(default="claude-sonnet-4-20250514")
    max_tokens: int = Field(default=8192, ge=1)
    timeout_seconds: float = Field(default=120.0, ge=1.0)
    api_key: Optional[str] = None


class SystemConfig(BaseModel):
    """Main system configuration."""
    log_level: str = Field(default="INFO")
    json_logging: bool = Field(default=False)
    history_limit: int = Field(default=30, ge=1, le=1000)
    storage_path: str = Field(default="./data/agents")

    proactive: ProactiveConfig = Field(default_factory=ProactiveConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)


def load_config_from_env() -> SystemConfig:
    """
    Load configuration from environment variables.

    Returns:
        SystemConfig: Configuration object with values from environment
    """
    config_data = {}

    if os.getenv("LOG_LEVEL"):
        config_data["log_level"] = os.getenv("LOG_LEVEL")

    if os.getenv("JSON_LOGGING"):
        config_data["json_logging"] = os.getenv("JSON_LOGGING").lower() == "true"

    if os.getenv("CONTENT_AGENTS_HISTORY_LIMIT"):
        config_data["history_limit"] = int(os.getenv("CONTENT_AGENTS_HISTORY_LIMIT"))

    if os.getenv("CONTENT_AGENTS_STORAGE_PATH"):
        config_data["storage_path"] = os.getenv("CONTENT_AGENTS_STORAGE_PATH")

    proactive_config = {}
    if os.getenv("PROACTIVE_DEBOUNCE_SECONDS"):
        proactive_config["debounce_seconds"] = float(os.getenv("PROACTIVE_DEBOUNCE_SECONDS"))

    if os.getenv("PROACTIVE_CLAIM_WINDOW_SECONDS"):
        proactive_config["claim_window_seconds"] = float(os.getenv("PROACTIVE_CLAIM_WINDOW_SECONDS"))

    if os.getenv("SCHEDULER_COOLDOWN_SECONDS"):
        proactive_config["scheduler_cooldown_seconds"] = float(os.getenv("SCHEDULER_COOLDOWN_SECONDS"))

    if proactive_config:
        config_data["proactive"] = proactive_config

    claude_config = {}
    if os.getenv("CLAUDE_API_KEY"):
        claude_config["api_key"] = os.getenv("CLAUDE_API_KEY")

    if os.getenv("CLAUDE_MODEL"):
        claude_config["model"] = os.getenv("CLAUDE_MODEL")

    if os.getenv("CLAUDE_API_URL"):
        claude_config["api_url"] = os.getenv("CLAUDE_API_URL")

    if claude_config:
        config_data["claude"] = claude_config

    return SystemConfig(**config_data)


def load_config_from_file(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        SystemConfig: Configuration object, defaults when the file is absent or unreadable
    """
    if config_path is None:
        config_path = Path("content_agents.json")

    if not config_path.exists():
        return SystemConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
        return SystemConfig(**config_data)
    except Exception as e:
        logger.warning("Could not load config file", path=str(config_path), error=str(e))
        return SystemConfig()


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load the file configuration and layer environment variables over it.
    """
    config = load_config_from_file(config_path)
    env_overrides = load_config_from_env().model_dump(exclude_unset=True)
    if env_overrides:
        config = SystemConfig(**_merge(config.model_dump(), env_overrides))
    return config


_config: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()

    return _config


def set_config(config: Optional[SystemConfig]) -> None:
    """Set (or reset, with None) the global configuration instance."""
    global _config
    _config = config
