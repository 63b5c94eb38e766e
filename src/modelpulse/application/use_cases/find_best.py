"""Unattended best-endpoint pick after a fixed observation window."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from modelpulse.domain.entities import EndpointSnapshot
from modelpulse.domain.exceptions import NoEndpointAvailableError
from modelpulse.infrastructure.probing import EndpointMonitor
from modelpulse.infrastructure.scoring import (
    average_latency,
    pick_best,
    stability_score,
    uptime,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BestPick:
    """The winning endpoint plus the statistics it won with."""

    endpoint: EndpointSnapshot
    average_latency: float
    uptime: int
    stability: int


class FindBestEndpointUseCase:
    """Observes every endpoint for a while, then picks the best one.

    Flow:
        1. Run probe rounds until the observation window closes
        2. Take a snapshot of every endpoint
        3. Select with ``pick_best`` (reachable, latency, stability, uptime)
    """

    def __init__(
        self,
        monitor: EndpointMonitor,
        observe_seconds: float,
        interval_seconds: float,
    ) -> None:
        self._monitor = monitor
        self._observe_seconds = observe_seconds
        self._interval_seconds = interval_seconds

    async def execute(self) -> BestPick:
        if not self._monitor.snapshots():
            raise NoEndpointAvailableError("No endpoints to observe")

        await self._monitor.observe(self._observe_seconds, self._interval_seconds)

        snapshots = self._monitor.snapshots()
        best = pick_best(snapshots)
        if best is None:
            raise NoEndpointAvailableError("No endpoints to observe")

        pick = BestPick(
            endpoint=best,
            average_latency=average_latency(best.history),
            uptime=uptime(best.history),
            stability=stability_score(best.history),
        )
        log.info(
            "best_endpoint_picked",
            endpoint=best.id,
            status=best.lifecycle_status.value,
            average_latency=pick.average_latency,
            uptime=pick.uptime,
            stability=pick.stability,
        )
        return pick
