"""OpenCode integration — set the default model in ``opencode.json``."""

from __future__ import annotations

import json
import shutil
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import structlog

from modelpulse.domain.entities.catalog import Provider
from modelpulse.domain.entities.selection import EndpointSelection, HandoffResult
from modelpulse.domain.exceptions import IntegrationError

log = structlog.get_logger(__name__)

_OPENAI_COMPATIBLE_NPM = "@ai-sdk/openai-compatible"


def _now_ms() -> int:
    return int(time.time() * 1000)


def backup_file(path: Path, now_ms: Callable[[], int] = _now_ms) -> Path | None:
    """Copy *path* to ``<path>.backup-<epoch_ms>``; ``None`` if it does not exist."""
    if not path.exists():
        return None
    backup = path.with_name(f"{path.name}.backup-{now_ms()}")
    shutil.copy2(path, backup)
    return backup


def write_json(path: Path, data: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


class OpenCodeIntegration:
    """Reads and updates the OpenCode configuration file.

    OpenCode keys providers under ``provider`` (singular) and selects the
    default model with ``"model": "<provider>/<model_id>"``.
    """

    def __init__(
        self,
        config_path: Path,
        providers: Mapping[str, Provider],
        *,
        now_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._path = config_path
        self._providers = providers
        self._now_ms = now_ms

    @property
    def config_path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"provider": {}}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise IntegrationError(
                f"Cannot read OpenCode config {self._path}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise IntegrationError(f"OpenCode config {self._path} is not a JSON object")
        data.setdefault("provider", {})
        return data

    def has_provider(self, provider_key: str) -> bool:
        """True if a provider block matches by key or display name."""
        config = self.load()
        provider = self._providers.get(provider_key)
        needle = (provider.name if provider else provider_key).lower()
        for key, block in config["provider"].items():
            if key == provider_key:
                return True
            name = block.get("name", "") if isinstance(block, dict) else ""
            if isinstance(name, str) and name.lower() == needle:
                return True
        return False

    def _provider_block(self, provider: Provider) -> dict[str, Any]:
        api_key = f"{{env:{provider.env_vars[0]}}}" if provider.env_vars else ""
        return {
            "npm": _OPENAI_COMPATIBLE_NPM,
            "name": provider.name,
            "options": {"baseURL": provider.base_url, "apiKey": api_key},
            "models": {},
        }

    def set_default_model(self, selection: EndpointSelection) -> HandoffResult:
        """Make *selection* the default OpenCode model.

        Backs up an existing config first and adds the provider block and
        model entry when missing.
        """
        provider = self._providers.get(selection.provider_key)
        if provider is None:
            raise IntegrationError(f"Unknown provider: {selection.provider_key}")

        config = self.load()
        block = config["provider"].get(provider.key)
        provider_added = block is None
        if provider_added:
            block = self._provider_block(provider)
            config["provider"][provider.key] = block
        models = block.setdefault("models", {})
        models.setdefault(selection.model_id, {"name": selection.display_label})
        config["model"] = selection.id

        try:
            backup = backup_file(self._path, self._now_ms)
            write_json(self._path, config)
        except OSError as exc:
            raise IntegrationError(
                f"Cannot write OpenCode config {self._path}: {exc}"
            ) from exc

        log.info(
            "opencode_default_model_set",
            model=selection.id,
            provider_added=provider_added,
            backup=str(backup) if backup else None,
        )
        return HandoffResult(
            tool="opencode",
            model_ref=selection.id,
            config_path=self._path,
            backup_path=backup,
            detail="provider block added" if provider_added else None,
        )

    def launch(self, command: Sequence[str] = ("opencode",)) -> int:
        """Run OpenCode in the foreground and return its exit code."""
        try:
            completed = subprocess.run(list(command), check=False)
        except FileNotFoundError as exc:
            raise IntegrationError(
                f'Could not find "{command[0]}". Is it installed and on your PATH?'
            ) from exc
        return completed.returncode
