"""Composition root: wires config, settings, catalog and probing together."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager

import httpx
import structlog

from modelpulse.domain.entities import TIER_LETTER_MAP, EndpointState, Provider
from modelpulse.infrastructure.catalog.sources import (
    BEST_TIERS,
    NVIDIA_NIM,
    build_endpoints,
)
from modelpulse.infrastructure.config.schema import AppConfig
from modelpulse.infrastructure.metrics import MetricsCollector
from modelpulse.infrastructure.persistence.settings_store import (
    Settings,
    get_api_key,
    is_provider_enabled,
)
from modelpulse.infrastructure.probing import EndpointMonitor, HttpEndpointProber

log = structlog.get_logger(__name__)

_USER_AGENT = "modelpulse/0.1"

# The free-form credential on the command line belongs to this provider.
CLI_CREDENTIAL_PROVIDER = NVIDIA_NIM.key


def resolve_credentials(
    settings: Settings,
    providers: Mapping[str, Provider],
    cli_credential: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str | None]:
    """Credential per provider key.

    A credential given on the command line wins for
    ``CLI_CREDENTIAL_PROVIDER``; otherwise env vars, then stored keys.
    """
    env = os.environ if environ is None else environ
    credentials = {
        key: get_api_key(settings, provider, env) for key, provider in providers.items()
    }
    if cli_credential and CLI_CREDENTIAL_PROVIDER in credentials:
        credentials[CLI_CREDENTIAL_PROVIDER] = cli_credential
    return credentials


def select_endpoints(
    settings: Settings,
    providers: Mapping[str, Provider],
    *,
    tier_letter: str | None = None,
    best_mode: bool = False,
) -> list[EndpointState]:
    """Endpoints of enabled providers, narrowed by ``--tier`` and ``--best``.

    Ranks keep their catalog position so filtered views stay comparable.
    """
    enabled = {key: is_provider_enabled(settings, key) for key in providers}
    states = build_endpoints(providers.values(), enabled)
    if tier_letter is not None:
        allowed = TIER_LETTER_MAP[tier_letter]
        states = [s for s in states if s.capability_tier in allowed]
    if best_mode:
        states = [s for s in states if s.capability_tier in BEST_TIERS]
    log.debug(
        "endpoints_selected",
        count=len(states),
        tier_letter=tier_letter,
        best_mode=best_mode,
    )
    return states


@asynccontextmanager
async def probing_session(
    config: AppConfig,
    endpoints: Sequence[EndpointState],
    providers: Mapping[str, Provider],
    credentials: Mapping[str, str | None],
) -> AsyncIterator[EndpointMonitor]:
    """Shared HTTP client plus a monitor over *endpoints*.

    The client is closed when the block exits.
    """
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(config.probe_timeout_ms / 1000),
        headers={"User-Agent": _USER_AGENT},
        follow_redirects=True,
    ) as http_client:
        log.info("http_client_initialized", timeout_ms=config.probe_timeout_ms)
        monitor = EndpointMonitor(
            endpoints=endpoints,
            providers=providers,
            prober=HttpEndpointProber(http_client),
            credentials=credentials,
            timeout_ms=config.probe_timeout_ms,
            metrics=MetricsCollector(),
        )
        yield monitor
    log.info("http_client_closed")
