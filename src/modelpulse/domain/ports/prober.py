"""Port for the single-request endpoint probe."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from modelpulse.domain.entities.catalog import Provider
from modelpulse.domain.entities.endpoint import ProbeOutcome


@runtime_checkable
class EndpointProberPort(Protocol):
    """Async probe primitive.

    Must return within ``timeout_ms`` plus a small margin and never raise
    for expected failures (timeout, rejection, server error): those are
    recorded as outcomes.
    """

    async def probe(
        self,
        provider: Provider,
        model_id: str,
        credential: str | None,
        timeout_ms: int,
    ) -> ProbeOutcome: ...
