"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (probe/ui/logging/paths).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="modelpulse", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Probing (YAML section: probe.*)
    probe_timeout_ms: int = Field(
        default=6_000,
        validation_alias=AliasChoices(
            "probe_timeout_ms",
            AliasPath("probe", "timeout_ms"),
        ),
        description="Wall-clock budget per probe attempt in milliseconds.",
    )
    probe_interval_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "probe_interval_seconds",
            AliasPath("probe", "interval_seconds"),
        ),
        description="Delay between probe rounds.",
    )
    probe_observe_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "probe_observe_seconds",
            AliasPath("probe", "observe_seconds"),
        ),
        description="Observation window before the unattended best pick.",
    )

    # Terminal UI (YAML section: ui.*)
    ui_fps: int = Field(
        default=12,
        validation_alias=AliasChoices(
            "ui_fps",
            AliasPath("ui", "fps"),
        ),
        description="Dashboard refresh rate.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="WARNING",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )
    log_file: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_file",
            AliasPath("logging", "file"),
        ),
        description="Write logs to this file instead of stderr.",
    )

    # Files (YAML section: paths.*)
    settings_path: Path = Field(
        default=Path("~/.modelpulse.json"),
        validation_alias=AliasChoices(
            "settings_path",
            AliasPath("paths", "settings"),
        ),
        description="Persisted API keys, providers, favorites and profiles.",
    )
    opencode_config_path: Path = Field(
        default=Path("~/.config/opencode/opencode.json"),
        validation_alias=AliasChoices(
            "opencode_config_path",
            AliasPath("paths", "opencode_config"),
        ),
        description="OpenCode configuration file.",
    )
    openclaw_models_path: Path = Field(
        default=Path("~/.openclaw/agents/main/agent/models.json"),
        validation_alias=AliasChoices(
            "openclaw_models_path",
            AliasPath("paths", "openclaw_models"),
        ),
        description="OpenClaw models.json file.",
    )

    @field_validator(
        "settings_path", "opencode_config_path", "openclaw_models_path", mode="before"
    )
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return _normalize_path(v)

    @field_validator("probe_timeout_ms", "ui_fps")
    @classmethod
    def _validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v

    @field_validator("probe_interval_seconds", "probe_observe_seconds")
    @classmethod
    def _validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "probe": {
                "timeout_ms": self.probe_timeout_ms,
                "interval_seconds": self.probe_interval_seconds,
                "observe_seconds": self.probe_observe_seconds,
            },
            "ui": {"fps": self.ui_fps},
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "file": str(self.log_file) if self.log_file else None,
            },
            "paths": {
                "settings": str(self.settings_path),
                "opencode_config": str(self.opencode_config_path),
                "openclaw_models": str(self.openclaw_models_path),
            },
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - MODELPULSE_PROBE_TIMEOUT_MS
    - MODELPULSE_PROBE_INTERVAL_SECONDS
    - MODELPULSE_LOG_LEVEL
    - MODELPULSE_SETTINGS_PATH
    """

    model_config = SettingsConfigDict(
        env_prefix="MODELPULSE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    probe_timeout_ms: Optional[int] = None
    probe_interval_seconds: Optional[float] = None
    probe_observe_seconds: Optional[float] = None

    ui_fps: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None
    log_file: Optional[Path] = None

    settings_path: Optional[Path] = None
    opencode_config_path: Optional[Path] = None
    openclaw_models_path: Optional[Path] = None

    @field_validator(
        "log_file",
        "settings_path",
        "opencode_config_path",
        "openclaw_models_path",
        mode="before",
    )
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
