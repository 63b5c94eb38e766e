"""Shared test fixtures for the ModelPulse test suite."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest

from modelpulse.domain.entities import (
    CatalogModel,
    EndpointSnapshot,
    LifecycleStatus,
    Provider,
)

# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_environ():
    """Restore os.environ after each test (load_dotenv writes into it)."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


# ---------------------------------------------------------------------------
# Entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_snapshot() -> Callable[..., EndpointSnapshot]:
    """Factory for EndpointSnapshot with sensible defaults."""

    def _make(**overrides: Any) -> EndpointSnapshot:
        fields: dict[str, Any] = {
            "rank": 1,
            "provider_key": "nvidia",
            "model_id": "vendor/model",
            "display_label": "Model",
            "capability_tier": "A",
            "lifecycle_status": LifecycleStatus.REACHABLE,
        }
        fields.update(overrides)
        return EndpointSnapshot(**fields)

    return _make


@pytest.fixture()
def provider() -> Provider:
    """Small provider with three models across tiers."""
    return Provider(
        key="nvidia",
        name="NVIDIA NIM",
        base_url="https://integrate.api.nvidia.com/v1",
        models=(
            CatalogModel("deepseek-ai/deepseek-v3.1", "DeepSeek V3.1", "S", "49.6%", "128k"),
            CatalogModel("moonshotai/kimi-k2-thinking", "Kimi K2 Thinking", "S+", "71.3%", "256k"),
            CatalogModel("google/gemma-3-12b-it", "Gemma 3 12B", "C", None, "128k"),
        ),
        env_vars=("NVIDIA_API_KEY",),
    )


@pytest.fixture()
def providers(provider: Provider) -> dict[str, Provider]:
    return {provider.key: provider}
