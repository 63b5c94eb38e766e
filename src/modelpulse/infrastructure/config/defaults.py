"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "modelpulse",
    "environment": "dev",
    "probe": {
        "timeout_ms": 6_000,
        "interval_seconds": 5.0,
        "observe_seconds": 10.0,
    },
    "ui": {
        "fps": 12,
    },
    "logging": {
        "level": "WARNING",
        "format": None,  # Derived from environment in schema.py
        "file": None,
    },
    "paths": {
        "settings": "~/.modelpulse.json",
        "opencode_config": "~/.config/opencode/opencode.json",
        "openclaw_models": "~/.openclaw/agents/main/agent/models.json",
    },
}
