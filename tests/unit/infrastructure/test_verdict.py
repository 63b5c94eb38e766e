"""Tests for the endpoint health verdict."""

from __future__ import annotations

import pytest

from modelpulse.domain.entities import (
    LifecycleStatus,
    ProbeOutcome,
    ProbeOutcomeKind,
    Verdict,
)
from modelpulse.infrastructure.scoring.verdict import verdict, verdict_index


def _ok(ms: int) -> ProbeOutcome:
    return ProbeOutcome(elapsed_ms=ms, outcome=ProbeOutcomeKind.SUCCESS, status_code=200)


def _history(*latencies: int) -> tuple[ProbeOutcome, ...]:
    return tuple(_ok(ms) for ms in latencies)


class TestRateLimit:
    def test_rate_limit_code_forces_overloaded(self, make_snapshot) -> None:
        endpoint = make_snapshot(history=_history(100, 120), last_error_code="429")
        assert verdict(endpoint) is Verdict.OVERLOADED

    @pytest.mark.parametrize(
        "status",
        [LifecycleStatus.UNREACHABLE, LifecycleStatus.TIMED_OUT, LifecycleStatus.PENDING],
    )
    def test_overloaded_wins_over_status(self, make_snapshot, status) -> None:
        endpoint = make_snapshot(lifecycle_status=status, last_error_code="429")
        assert verdict(endpoint) is Verdict.OVERLOADED

    def test_stale_rate_limit_still_overloaded(self, make_snapshot) -> None:
        # The code is kept after later successes.
        endpoint = make_snapshot(
            history=(
                ProbeOutcome(5, ProbeOutcomeKind.RATE_LIMITED, 429),
                _ok(100),
                _ok(110),
            ),
            last_error_code="429",
        )
        assert verdict(endpoint) is Verdict.OVERLOADED

    def test_other_error_code_does_not_overload(self, make_snapshot) -> None:
        endpoint = make_snapshot(history=_history(100), last_error_code="500")
        assert verdict(endpoint) is Verdict.PERFECT


class TestDownEndpoints:
    @pytest.mark.parametrize(
        "status", [LifecycleStatus.UNREACHABLE, LifecycleStatus.TIMED_OUT]
    )
    def test_down_with_prior_success_is_unstable(self, make_snapshot, status) -> None:
        endpoint = make_snapshot(lifecycle_status=status, history=_history(200))
        assert verdict(endpoint) is Verdict.UNSTABLE

    @pytest.mark.parametrize(
        "status", [LifecycleStatus.UNREACHABLE, LifecycleStatus.TIMED_OUT]
    )
    def test_down_without_success_is_not_active(self, make_snapshot, status) -> None:
        endpoint = make_snapshot(
            lifecycle_status=status,
            history=(ProbeOutcome(6000, ProbeOutcomeKind.TIMEOUT),),
        )
        assert verdict(endpoint) is Verdict.NOT_ACTIVE

    def test_auth_missing_is_not_down(self, make_snapshot) -> None:
        endpoint = make_snapshot(
            lifecycle_status=LifecycleStatus.AUTH_MISSING,
            history=(ProbeOutcome(90, ProbeOutcomeKind.AUTH_MISSING, 401),),
        )
        assert verdict(endpoint) is Verdict.PENDING


class TestLatencyBands:
    def test_no_history_is_pending(self, make_snapshot) -> None:
        assert verdict(make_snapshot()) is Verdict.PENDING

    @pytest.mark.parametrize(
        ("latencies", "expected"),
        [
            ((100, 200, 300), Verdict.PERFECT),
            ((399,), Verdict.PERFECT),
            ((400,), Verdict.NORMAL),
            ((999,), Verdict.NORMAL),
            ((1000,), Verdict.SLOW),
            ((2999,), Verdict.SLOW),
            ((3000,), Verdict.VERY_SLOW),
            ((4999,), Verdict.VERY_SLOW),
            ((5000,), Verdict.UNSTABLE),
        ],
    )
    def test_bands(self, make_snapshot, latencies, expected) -> None:
        assert verdict(make_snapshot(history=_history(*latencies))) is expected

    def test_spiky_carve_out_in_normal_range(self, make_snapshot) -> None:
        endpoint = make_snapshot(history=_history(*[200] * 18, 8000, 8000))
        assert verdict(endpoint) is Verdict.SPIKY

    def test_spiky_carve_out_in_perfect_range(self, make_snapshot) -> None:
        endpoint = make_snapshot(history=_history(*[100] * 15, 3500))
        assert verdict(endpoint) is Verdict.SPIKY

    def test_is_idempotent(self, make_snapshot) -> None:
        endpoint = make_snapshot(history=_history(150, 180, 6000))
        assert verdict(endpoint) is verdict(endpoint)


class TestVerdictIndex:
    def test_healthiest_first(self) -> None:
        assert verdict_index(Verdict.PERFECT) == 0
        assert verdict_index(Verdict.PENDING) == len(Verdict) - 1

    def test_order_is_strict(self) -> None:
        indexes = [verdict_index(v) for v in Verdict]
        assert indexes == sorted(indexes)
