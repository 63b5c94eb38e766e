"""Endpoint prober — one-token chat completion against a provider."""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from modelpulse.domain.entities.catalog import Provider
from modelpulse.domain.entities.endpoint import ProbeOutcome, ProbeOutcomeKind

log = structlog.get_logger(__name__)

_PROBE_PROMPT = "hi"


def classify_status(status_code: int) -> ProbeOutcomeKind:
    """Map a raw HTTP status onto the closed outcome set."""
    if status_code == 200:
        return ProbeOutcomeKind.SUCCESS
    if status_code in (401, 403):
        return ProbeOutcomeKind.AUTH_MISSING
    if status_code == 429:
        return ProbeOutcomeKind.RATE_LIMITED
    if status_code >= 500:
        return ProbeOutcomeKind.SERVER_ERROR
    return ProbeOutcomeKind.OTHER


def _elapsed_ms(t0: float) -> int:
    return round((time.monotonic() - t0) * 1000)


class HttpEndpointProber:
    """Probes OpenAI-compatible chat endpoints for reachability and latency.

    Sends the cheapest request that exercises the model: a single user
    message with ``max_tokens=1``. Expected failures (timeouts, rejections,
    server errors) come back as outcomes; nothing is raised for them.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def probe(
        self,
        provider: Provider,
        model_id: str,
        credential: str | None,
        timeout_ms: int,
    ) -> ProbeOutcome:
        """Probe a single model and return a ProbeOutcome."""
        url = f"{provider.base_url}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        payload = {
            "model": model_id,
            "messages": [{"role": "user", "content": _PROBE_PROMPT}],
            "max_tokens": 1,
        }

        budget = timeout_ms / 1000
        t0 = time.monotonic()
        try:
            # httpx timeouts are per phase; wait_for caps the whole exchange.
            resp = await asyncio.wait_for(
                self._http.post(url, json=payload, headers=headers, timeout=budget),
                timeout=budget,
            )
            return ProbeOutcome(
                elapsed_ms=_elapsed_ms(t0),
                outcome=classify_status(resp.status_code),
                status_code=resp.status_code,
            )
        except (TimeoutError, httpx.TimeoutException):
            return ProbeOutcome(
                elapsed_ms=_elapsed_ms(t0),
                outcome=ProbeOutcomeKind.TIMEOUT,
            )
        except httpx.HTTPError as exc:
            log.debug(
                "endpoint_probe_error",
                provider=provider.key,
                model=model_id,
                error=str(exc),
            )
            return ProbeOutcome(
                elapsed_ms=_elapsed_ms(t0),
                outcome=ProbeOutcomeKind.OTHER,
            )
