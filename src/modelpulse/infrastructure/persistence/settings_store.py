"""JSON settings file: API keys, enabled providers, favorites, profiles.

The file holds credentials, so it is written with mode ``0o600``.
A missing or unreadable file never stops the app: it starts with empty
settings and logs a warning.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modelpulse.domain.entities.catalog import Provider
from modelpulse.infrastructure.scoring.ordering import SortColumn, SortDirection

log = structlog.get_logger(__name__)

_FILE_MODE = 0o600


class ProviderSettings(BaseModel):
    enabled: bool = True


class TelemetrySettings(BaseModel):
    # None = the user has not decided yet.
    enabled: bool | None = None


class Profile(BaseModel):
    """Named dashboard view."""

    sort_column: SortColumn = SortColumn.AVERAGE_LATENCY
    sort_direction: SortDirection = SortDirection.ASCENDING
    tier_letter: str | None = None
    favorites_only: bool = False

    @field_validator("tier_letter")
    @classmethod
    def _upper_tier(cls, v: str | None) -> str | None:
        return v.upper() if v else None


class Settings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_keys: dict[str, str] = Field(default_factory=dict)
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)
    favorites: list[str] = Field(default_factory=list)
    profiles: dict[str, Profile] = Field(default_factory=dict)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @field_validator("favorites", mode="before")
    @classmethod
    def _clean_favorites(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [fav for fav in v if isinstance(fav, str) and fav.strip()]

    @field_validator("api_keys", "providers", "profiles", mode="before")
    @classmethod
    def _mapping_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, Mapping) else {}


class SettingsStore:
    """Load/save :class:`Settings` at a fixed path."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        if not self._path.exists():
            return Settings()
        try:
            raw = self._path.read_text(encoding="utf-8")
            data = json.loads(raw) if raw.strip() else {}
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return Settings.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError.
            log.warning("settings_unreadable", path=str(self._path), error=str(exc))
            return Settings()

    def save(self, settings: Settings) -> bool:
        """Write *settings* atomically. Returns ``False`` if the write failed."""
        payload = json.dumps(settings.model_dump(mode="json"), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.chmod(tmp_name, _FILE_MODE)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            log.warning("settings_save_failed", path=str(self._path), error=str(exc))
            return False
        log.debug("settings_saved", path=str(self._path))
        return True


def get_api_key(
    settings: Settings,
    provider: Provider,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Effective credential: env var first, then the stored key, else ``None``."""
    env = os.environ if environ is None else environ
    for var in provider.env_vars:
        value = env.get(var)
        if value:
            return value
    return settings.api_keys.get(provider.key) or None


def is_provider_enabled(settings: Settings, provider_key: str) -> bool:
    """Providers are enabled unless explicitly disabled."""
    provider_settings = settings.providers.get(provider_key)
    return provider_settings is None or provider_settings.enabled


def set_api_key(settings: Settings, provider_key: str, key: str) -> Settings:
    return settings.model_copy(
        update={"api_keys": {**settings.api_keys, provider_key: key}}
    )


def toggle_favorite(settings: Settings, endpoint_id: str) -> Settings:
    """Add *endpoint_id* to favorites, or remove it if already there."""
    if endpoint_id in settings.favorites:
        favorites = [f for f in settings.favorites if f != endpoint_id]
    else:
        favorites = [*settings.favorites, endpoint_id]
    return settings.model_copy(update={"favorites": favorites})


def save_profile(settings: Settings, name: str, profile: Profile) -> Settings:
    return settings.model_copy(
        update={"profiles": {**settings.profiles, name: profile}}
    )


def get_profile(settings: Settings, name: str) -> Profile | None:
    return settings.profiles.get(name)
