from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogModel:
    model_id: str  # e.g. "deepseek-ai/deepseek-v3.2"
    display_label: str
    tier: str  # one of TIER_ORDER
    declared_score: str | None = None  # "73.1%"
    context_size_label: str | None = None  # "128k", "1m"


@dataclass(frozen=True)
class Provider:
    key: str  # "nvidia", "groq", ...
    name: str  # display name
    base_url: str  # OpenAI-compatible API root, no trailing slash
    models: tuple[CatalogModel, ...] = ()
    env_vars: tuple[str, ...] = ()  # credential env vars, first match wins
