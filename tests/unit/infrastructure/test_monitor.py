"""Tests for EndpointMonitor and apply_outcome."""

from __future__ import annotations

import asyncio
from collections import deque

import pytest

from modelpulse.domain.entities import (
    EndpointState,
    LifecycleStatus,
    ProbeOutcome,
    ProbeOutcomeKind,
    Provider,
)
from modelpulse.infrastructure.metrics import MetricsCollector
from modelpulse.infrastructure.probing.monitor import EndpointMonitor, apply_outcome


def _state(model_id: str = "m", provider_key: str = "nvidia") -> EndpointState:
    return EndpointState(
        rank=1,
        provider_key=provider_key,
        model_id=model_id,
        display_label=model_id.upper(),
        capability_tier="A",
    )


class _ScriptedProber:
    """Returns queued outcomes per model id; records every call."""

    def __init__(self, script: dict[str, list[ProbeOutcome]] | None = None) -> None:
        self._script = {k: deque(v) for k, v in (script or {}).items()}
        self.calls: list[tuple[str, str, str | None, int]] = []

    async def probe(
        self, provider: Provider, model_id: str, credential: str | None, timeout_ms: int
    ) -> ProbeOutcome:
        self.calls.append((provider.key, model_id, credential, timeout_ms))
        queue = self._script.get(model_id)
        if queue:
            return queue.popleft()
        return ProbeOutcome(100, ProbeOutcomeKind.SUCCESS, 200)


class _ExplodingProber:
    async def probe(self, provider, model_id, credential, timeout_ms) -> ProbeOutcome:
        raise RuntimeError("boom")


def _monitor(providers, prober, *states, credentials=None) -> EndpointMonitor:
    return EndpointMonitor(
        endpoints=list(states),
        providers=providers,
        prober=prober,
        credentials=credentials or {"nvidia": "nvapi-key"},
        timeout_ms=6000,
        metrics=MetricsCollector(),
    )


class TestApplyOutcome:
    @pytest.mark.parametrize(
        ("kind", "status"),
        [
            (ProbeOutcomeKind.SUCCESS, LifecycleStatus.REACHABLE),
            (ProbeOutcomeKind.AUTH_MISSING, LifecycleStatus.AUTH_MISSING),
            (ProbeOutcomeKind.RATE_LIMITED, LifecycleStatus.RATE_LIMITED),
            (ProbeOutcomeKind.TIMEOUT, LifecycleStatus.TIMED_OUT),
            (ProbeOutcomeKind.SERVER_ERROR, LifecycleStatus.UNREACHABLE),
            (ProbeOutcomeKind.OTHER, LifecycleStatus.UNREACHABLE),
        ],
    )
    def test_status_follows_outcome(self, kind, status) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, kind))
        assert state.lifecycle_status is status
        assert len(state.history) == 1

    def test_rate_limit_sets_code(self) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, ProbeOutcomeKind.RATE_LIMITED, 429))
        assert state.last_error_code == "429"

    def test_server_error_records_status_code(self) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, ProbeOutcomeKind.SERVER_ERROR, 503))
        assert state.last_error_code == "503"

    def test_transport_error_without_code(self) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, ProbeOutcomeKind.OTHER))
        assert state.last_error_code == "ERR"

    def test_success_keeps_previous_error_code(self) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, ProbeOutcomeKind.RATE_LIMITED, 429))
        apply_outcome(state, ProbeOutcome(120, ProbeOutcomeKind.SUCCESS, 200))
        assert state.lifecycle_status is LifecycleStatus.REACHABLE
        assert state.last_error_code == "429"

    def test_timeout_keeps_previous_error_code(self) -> None:
        state = _state()
        apply_outcome(state, ProbeOutcome(10, ProbeOutcomeKind.SERVER_ERROR, 500))
        apply_outcome(state, ProbeOutcome(6000, ProbeOutcomeKind.TIMEOUT))
        assert state.last_error_code == "500"


class TestRunRound:
    async def test_probes_every_endpoint_once(self, providers) -> None:
        prober = _ScriptedProber()
        monitor = _monitor(providers, prober, _state("a"), _state("b"))

        await monitor.run_round()

        assert sorted(call[1] for call in prober.calls) == ["a", "b"]
        assert all(call[2] == "nvapi-key" and call[3] == 6000 for call in prober.calls)
        assert all(len(s.history) == 1 for s in monitor.snapshots())

    async def test_missing_credential_passes_none(self, providers) -> None:
        prober = _ScriptedProber()
        monitor = _monitor(providers, prober, _state(), credentials={"groq": "x"})
        await monitor.run_round()
        assert prober.calls[0][2] is None

    async def test_records_metrics(self, providers) -> None:
        prober = _ScriptedProber(
            {"a": [ProbeOutcome(50, ProbeOutcomeKind.RATE_LIMITED, 429)]}
        )
        monitor = _monitor(providers, prober, _state("a"), _state("b"))

        await monitor.run_round()

        snap = monitor.metrics.snapshot()
        assert snap["rounds"]["rounds"] == 1
        assert snap["providers"]["nvidia"]["probes"] == 2
        assert snap["providers"]["nvidia"]["outcomes"] == {"rate_limited": 1, "success": 1}
        assert monitor.last_round_at is not None

    async def test_failed_round_is_counted_and_raised(self, providers) -> None:
        monitor = _monitor(providers, _ExplodingProber(), _state())
        with pytest.raises(RuntimeError):
            await monitor.run_round()
        assert monitor.metrics.snapshot()["rounds"]["failed_rounds"] == 1


class TestSnapshots:
    async def test_snapshots_are_detached(self, providers) -> None:
        monitor = _monitor(providers, _ScriptedProber(), _state())
        before = monitor.snapshots()
        await monitor.run_round()
        assert before[0].history == ()
        assert len(monitor.snapshots()[0].history) == 1

    def test_catalog_order(self, providers) -> None:
        monitor = _monitor(providers, _ScriptedProber(), _state("z"), _state("a"))
        assert [s.model_id for s in monitor.snapshots()] == ["z", "a"]


class TestRunForever:
    async def test_survives_failing_rounds_until_cancelled(self, providers) -> None:
        monitor = _monitor(providers, _ExplodingProber(), _state())
        task = asyncio.create_task(monitor.run_forever(interval_seconds=0.001))
        await asyncio.sleep(0.05)

        assert not task.done()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert monitor.metrics.snapshot()["rounds"]["failed_rounds"] >= 2

    async def test_keeps_probing(self, providers) -> None:
        monitor = _monitor(providers, _ScriptedProber(), _state())
        task = asyncio.create_task(monitor.run_forever(interval_seconds=0.001))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(monitor.snapshots()[0].history) >= 2


class TestObserve:
    async def test_zero_duration_runs_one_round(self, providers) -> None:
        monitor = _monitor(providers, _ScriptedProber(), _state())
        await monitor.observe(duration_seconds=0, interval_seconds=1)
        assert len(monitor.snapshots()[0].history) == 1

    async def test_runs_rounds_within_window(self, providers) -> None:
        monitor = _monitor(providers, _ScriptedProber(), _state())
        await monitor.observe(duration_seconds=0.2, interval_seconds=0.01)
        assert 2 <= len(monitor.snapshots()[0].history) <= 21
