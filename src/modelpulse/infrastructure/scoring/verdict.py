"""Qualitative health verdict for a single endpoint."""

from __future__ import annotations

import math

from modelpulse.domain.entities.endpoint import (
    RATE_LIMIT_CODE,
    EndpointSnapshot,
    LifecycleStatus,
    Verdict,
)
from modelpulse.infrastructure.scoring.latency import (
    average_latency,
    percentile_95,
    successful_latencies,
)

_DOWN_STATUSES = frozenset({LifecycleStatus.UNREACHABLE, LifecycleStatus.TIMED_OUT})

# Minimum successful samples before a tail spike may override a fast average.
_MIN_SAMPLES_FOR_SPIKY = 3


def verdict(endpoint: EndpointSnapshot) -> Verdict:
    """Classify an endpoint. The first matching rule wins.

    1. Last error code is a rate limit            -> Overloaded
    2. Down now, but succeeded before             -> Unstable
    3. Down now, never succeeded                  -> Not Active
    4. No successful sample yet                   -> Pending
    5. Average/p95 bands:
       - avg < 400:  Spiky if p95 > 3000 (with enough samples), else Perfect
       - avg < 1000: Spiky if p95 > 5000 (with enough samples), else Normal
       - avg < 3000: Slow
       - avg < 5000: Very Slow
       - otherwise:  Unstable

    The sample guard keeps one cold-start outlier from labelling an endpoint
    Spiky before there is enough data to judge.
    """
    history = endpoint.history
    samples = successful_latencies(history)

    if endpoint.last_error_code == RATE_LIMIT_CODE:
        return Verdict.OVERLOADED
    if endpoint.lifecycle_status in _DOWN_STATUSES:
        return Verdict.UNSTABLE if samples else Verdict.NOT_ACTIVE

    avg = average_latency(history)
    if math.isinf(avg):
        return Verdict.PENDING

    p95 = percentile_95(history)
    enough_data = len(samples) >= _MIN_SAMPLES_FOR_SPIKY

    if avg < 400:
        return Verdict.SPIKY if enough_data and p95 > 3000 else Verdict.PERFECT
    if avg < 1000:
        return Verdict.SPIKY if enough_data and p95 > 5000 else Verdict.NORMAL
    if avg < 3000:
        return Verdict.SLOW
    if avg < 5000:
        return Verdict.VERY_SLOW
    return Verdict.UNSTABLE


def verdict_index(value: Verdict) -> int:
    """Position of *value* in the healthiest-first verdict order."""
    return list(Verdict).index(value)
