"""OpenClaw integration — register catalog models in ``models.json``."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from modelpulse.domain.entities.catalog import CatalogModel, Provider
from modelpulse.domain.entities.selection import EndpointSelection, HandoffResult
from modelpulse.domain.exceptions import IntegrationError
from modelpulse.infrastructure.integrations.opencode import backup_file, write_json

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PatchReport:
    added: int
    total: int
    backup: Path | None = None
    error: str | None = None

    @property
    def was_patched(self) -> bool:
        return self.added > 0


def model_limits(tier: str) -> tuple[int, int]:
    """``(context_window, max_tokens)`` written for a model of *tier*."""
    if tier in ("S+", "S"):
        return 128_000, 8_192
    if tier in ("A+", "A", "A-"):
        return 131_072, 4_096
    return 32_768, 2_048


def model_entry(model: CatalogModel) -> dict[str, Any]:
    context_window, max_tokens = model_limits(model.tier)
    return {
        "id": model.model_id,
        "name": model.display_label,
        "contextWindow": context_window,
        "maxTokens": max_tokens,
        "reasoning": "thinking" in model.model_id,
        "input": ["text"],
        "cost": {"input": 0, "output": 0, "cacheRead": 0, "cacheWrite": 0},
    }


class OpenClawIntegration:
    def __init__(
        self,
        models_path: Path,
        providers: dict[str, Provider],
        *,
        now_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ) -> None:
        self._path = models_path
        self._providers = providers
        self._now_ms = now_ms

    def patch_models(self, provider: Provider) -> PatchReport:
        """Add every catalog model of *provider* missing from ``models.json``.

        The file is only written (after a backup) when something was added.
        A missing or unreadable file yields a report with ``error`` set.
        """
        if not self._path.exists():
            return PatchReport(added=0, total=0, error="models.json not found")
        try:
            config = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            return PatchReport(added=0, total=0, error=str(exc))

        providers = config.setdefault("providers", {})
        block = providers.setdefault(
            provider.key,
            {"baseUrl": provider.base_url, "api": "openai-completions", "models": []},
        )
        models: list[dict[str, Any]] = block.setdefault("models", [])
        existing = {m.get("id") for m in models if isinstance(m, dict)}

        added = 0
        for model in provider.models:
            if model.model_id in existing:
                continue
            models.append(model_entry(model))
            added += 1

        if not added:
            return PatchReport(added=0, total=len(models))

        try:
            backup = backup_file(self._path, self._now_ms)
            write_json(self._path, config)
        except OSError as exc:
            raise IntegrationError(f"Cannot write {self._path}: {exc}") from exc

        log.info("openclaw_models_patched", provider=provider.key, added=added)
        return PatchReport(added=added, total=len(models), backup=backup)

    def register(self, selection: EndpointSelection) -> HandoffResult:
        """Make sure the selected endpoint's provider models are registered."""
        provider = self._providers.get(selection.provider_key)
        if provider is None:
            raise IntegrationError(f"Unknown provider: {selection.provider_key}")
        report = self.patch_models(provider)
        if report.error is not None:
            raise IntegrationError(f"OpenClaw {self._path}: {report.error}")
        return HandoffResult(
            tool="openclaw",
            model_ref=selection.id,
            config_path=self._path,
            backup_path=report.backup,
            changed=report.was_patched,
            detail=f"{report.added} added, {report.total} total",
        )
