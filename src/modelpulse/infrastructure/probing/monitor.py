"""Endpoint monitor — owns endpoint state and runs probe rounds."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence

import structlog

from modelpulse.domain.entities.catalog import Provider
from modelpulse.domain.entities.endpoint import (
    RATE_LIMIT_CODE,
    EndpointSnapshot,
    EndpointState,
    LifecycleStatus,
    ProbeOutcome,
    ProbeOutcomeKind,
)
from modelpulse.domain.ports.prober import EndpointProberPort
from modelpulse.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)

_STATUS_BY_OUTCOME: dict[ProbeOutcomeKind, LifecycleStatus] = {
    ProbeOutcomeKind.SUCCESS: LifecycleStatus.REACHABLE,
    ProbeOutcomeKind.AUTH_MISSING: LifecycleStatus.AUTH_MISSING,
    ProbeOutcomeKind.RATE_LIMITED: LifecycleStatus.RATE_LIMITED,
    ProbeOutcomeKind.TIMEOUT: LifecycleStatus.TIMED_OUT,
    ProbeOutcomeKind.SERVER_ERROR: LifecycleStatus.UNREACHABLE,
    ProbeOutcomeKind.OTHER: LifecycleStatus.UNREACHABLE,
}


def apply_outcome(state: EndpointState, outcome: ProbeOutcome) -> None:
    """Record *outcome* on *state*: append to history, update status.

    Rejections remember their status code in ``last_error_code`` (``"ERR"``
    for transport errors without one). Timeouts and successes leave it
    untouched, so a rate limit stays visible until another error replaces it.
    """
    state.history.append(outcome)
    state.lifecycle_status = _STATUS_BY_OUTCOME[outcome.outcome]

    if outcome.outcome is ProbeOutcomeKind.RATE_LIMITED:
        state.last_error_code = RATE_LIMIT_CODE
    elif outcome.outcome not in (ProbeOutcomeKind.SUCCESS, ProbeOutcomeKind.TIMEOUT):
        state.last_error_code = (
            str(outcome.status_code) if outcome.status_code is not None else "ERR"
        )


class EndpointMonitor:
    """Probes every endpoint repeatedly and keeps its history.

    The monitor is the only writer of ``EndpointState``; everything else
    reads :meth:`snapshots`. Call :meth:`run_forever` as an asyncio task.
    Cancellation is clean — the task stops at its current await and exits.
    """

    def __init__(
        self,
        *,
        endpoints: Sequence[EndpointState],
        providers: Mapping[str, Provider],
        prober: EndpointProberPort,
        credentials: Mapping[str, str | None],
        timeout_ms: int,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._endpoints = list(endpoints)
        self._providers = providers
        self._prober = prober
        self._credentials = credentials
        self._timeout_ms = timeout_ms
        self._metrics = metrics or MetricsCollector()
        self._last_round_at: float | None = None

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def last_round_at(self) -> float | None:
        """``time.monotonic()`` at the start of the latest round."""
        return self._last_round_at

    def snapshots(self) -> tuple[EndpointSnapshot, ...]:
        """Read-only view of every endpoint, in catalog order."""
        return tuple(state.snapshot() for state in self._endpoints)

    async def _probe_one(self, state: EndpointState) -> None:
        provider = self._providers[state.provider_key]
        outcome = await self._prober.probe(
            provider,
            state.model_id,
            self._credentials.get(state.provider_key),
            self._timeout_ms,
        )
        apply_outcome(state, outcome)
        self._metrics.record_probe(state.provider_key, outcome)
        log.debug(
            "endpoint_probe_done",
            endpoint=state.id,
            outcome=outcome.outcome.value,
            elapsed_ms=outcome.elapsed_ms,
        )

    async def run_round(self) -> None:
        """Probe every endpoint once, concurrently.

        Each outcome is applied as soon as its probe completes.
        """
        self._last_round_at = time.monotonic()
        t0 = time.perf_counter_ns()
        failed = False
        try:
            await asyncio.gather(*(self._probe_one(s) for s in self._endpoints))
        except Exception:
            failed = True
            raise
        finally:
            self._metrics.record_round(time.perf_counter_ns() - t0, failed=failed)

    async def run_forever(self, interval_seconds: float) -> None:
        """Main loop: probe round, sleep, repeat."""
        log.info(
            "endpoint_monitor_started",
            endpoints=len(self._endpoints),
            interval_seconds=interval_seconds,
        )
        try:
            while True:
                try:
                    await self.run_round()
                except Exception:
                    log.error("endpoint_monitor_round_error", exc_info=True)
                await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            log.info("endpoint_monitor_cancelled")
            raise

    async def observe(self, duration_seconds: float, interval_seconds: float) -> None:
        """Probe for *duration_seconds*, one round per interval.

        The first round always runs; no new round starts past the deadline.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_seconds
        log.info("endpoint_observation_started", duration_seconds=duration_seconds)

        await self.run_round()
        while (remaining := deadline - loop.time()) > 0:
            await asyncio.sleep(min(interval_seconds, remaining))
            if loop.time() >= deadline:
                break
            await self.run_round()

        log.info("endpoint_observation_done", probes=self._metrics.total_probes)
