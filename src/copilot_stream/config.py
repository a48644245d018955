"""Configuration for copilot-stream.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./copilot_stream.yaml``
  3. ``~/.config/copilot-stream/config.yaml``
  4. Built-in defaults

``COPILOT_STREAM_URL`` and ``COPILOT_STREAM_API_KEY`` override the active
profile's endpoint and credential.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_logger = logging.getLogger(__name__)

ENV_URL = "COPILOT_STREAM_URL"
ENV_API_KEY = "COPILOT_STREAM_API_KEY"

_DEFAULT_URL = "http://localhost:54321/functions/v1/ai-pilotage"

_DEFAULT_QUESTIONS = [
    "What is the total amount of overdue invoices?",
    "Which suppliers have the most disputes?",
    "What is the invoice trend this month?",
    "How many invoices are in exception?",
    "What is the average processing time?",
    "Are there any critical anomalies to handle?",
    "Who are the top 5 suppliers by amount?",
    "Summarize the current financial situation",
]


# ---------------------------------------------------------------------------
# Config data structures
# ---------------------------------------------------------------------------

@dataclass
class EndpointSpec:
    """A named inference endpoint."""

    url: str = _DEFAULT_URL
    api_key: str = "no-key"
    timeout: float = 120
    connect_timeout: float = 30
    # Maximum silence between two body chunks
    read_timeout: float = 60
    extra_headers: dict[str, str] = field(default_factory=dict)


@dataclass
class CopilotConfig:
    """Top-level config."""

    # Active profile name
    profile: str = "default"

    profiles: dict[str, EndpointSpec] = field(
        default_factory=lambda: {"default": EndpointSpec()}
    )

    suggested_questions: list[str] = field(
        default_factory=lambda: list(_DEFAULT_QUESTIONS)
    )

    @property
    def active_profile(self) -> EndpointSpec:
        return self.profiles.get(self.profile, EndpointSpec())


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./copilot_stream.yaml"),
    Path.home() / ".config" / "copilot-stream" / "config.yaml",
]


def _parse_endpoint(raw: dict[str, Any]) -> EndpointSpec:
    return EndpointSpec(
        url=raw.get("url", _DEFAULT_URL),
        api_key=raw.get("api_key", "no-key"),
        timeout=raw.get("timeout", 120),
        connect_timeout=raw.get("connect_timeout", 30),
        read_timeout=raw.get("read_timeout", 60),
        extra_headers=raw.get("extra_headers", {}),
    )


def _apply_env(config: CopilotConfig) -> CopilotConfig:
    url = os.environ.get(ENV_URL)
    api_key = os.environ.get(ENV_API_KEY)
    if not (url or api_key):
        return config
    profile = config.profiles.setdefault(config.profile, EndpointSpec())
    if url:
        profile.url = url
    if api_key:
        profile.api_key = api_key
    return config


def load_config(path: str | Path | None = None) -> CopilotConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Returns
    -------
    CopilotConfig
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return _apply_env(CopilotConfig())
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return _apply_env(CopilotConfig())

    _logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        _logger.warning(
            "Config file %s is not a mapping (got %s), using defaults",
            config_path, type(raw).__name__,
        )
        return _apply_env(CopilotConfig())

    profiles: dict[str, EndpointSpec] = {}
    for name, praw in (raw.get("profiles") or {}).items():
        profiles[name] = _parse_endpoint(praw or {})
    if not profiles:
        profiles["default"] = EndpointSpec()

    config = CopilotConfig(
        profile=raw.get("profile", next(iter(profiles))),
        profiles=profiles,
        suggested_questions=raw.get("suggested_questions", list(_DEFAULT_QUESTIONS)),
    )
    return _apply_env(config)
