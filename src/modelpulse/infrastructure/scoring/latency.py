"""Latency and stability statistics over a probe history.

All functions are pure (no I/O, no state) and operate on a sequence of
``ProbeOutcome`` entities from ``modelpulse.domain.entities.endpoint``.

"No data" is signalled with sentinels, never exceptions:

- ``math.inf`` for latency statistics without a successful sample,
- ``0`` for uptime of an empty history,
- ``-1`` for the stability score without a successful sample.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from modelpulse.domain.entities.endpoint import ProbeOutcome

# p95 at or above this floors the p95 sub-score to 0.
_P95_CEILING_MS: float = 5_000.0

# Jitter at or above this floors the jitter sub-score to 0.
_JITTER_CEILING_MS: float = 2_000.0

# Successful pings slower than this count as spikes.
SPIKE_THRESHOLD_MS: int = 3_000

_W_P95: float = 0.30
_W_JITTER: float = 0.30
_W_SPIKE: float = 0.20
_W_RELIABILITY: float = 0.20


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` uses banker's rounding (``round(333.5) == 334`` but
    ``round(332.5) == 332``); latency figures must round halves up.
    """
    return math.floor(value + 0.5)


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def successful_latencies(history: Sequence[ProbeOutcome]) -> list[int]:
    """Return ``elapsed_ms`` of successful probes, in probe order."""
    return [p.elapsed_ms for p in history if p.ok]


def average_latency(history: Sequence[ProbeOutcome]) -> float:
    """Mean latency of successful probes, rounded to an integer.

    Failed attempts are excluded: a rate-limit rejection can return almost
    instantly and would drag the mean down.

    Returns:
        The rounded mean, or ``math.inf`` when there is no successful probe.
    """
    samples = successful_latencies(history)
    if not samples:
        return math.inf
    return round_half_up(sum(samples) / len(samples))


def percentile_95(history: Sequence[ProbeOutcome]) -> float:
    """Nearest-rank 95th percentile of successful latencies.

    Index ``ceil(n * 0.95) - 1`` into the ascending samples, clamped to
    ``[0, n - 1]``. With 5 samples this is the maximum, with 20 samples
    the second highest.
    """
    samples = sorted(successful_latencies(history))
    if not samples:
        return math.inf
    idx = math.ceil(len(samples) * 0.95) - 1
    idx = max(0, min(len(samples) - 1, idx))
    return samples[idx]


def jitter(history: Sequence[ProbeOutcome]) -> int:
    """Population standard deviation of successful latencies, rounded.

    The history is every observation made so far, so the variance divides
    by ``n``. Fewer than two samples yield ``0``.
    """
    samples = successful_latencies(history)
    if len(samples) < 2:
        return 0
    mean = sum(samples) / len(samples)
    variance = sum((s - mean) ** 2 for s in samples) / len(samples)
    return round_half_up(math.sqrt(variance))


def uptime(history: Sequence[ProbeOutcome]) -> int:
    """Percentage (0–100) of probes that succeeded; ``0`` for no probes."""
    if not history:
        return 0
    successes = sum(1 for p in history if p.ok)
    return round_half_up(successes / len(history) * 100)


def spike_rate(history: Sequence[ProbeOutcome]) -> float:
    """Fraction of successful probes slower than ``SPIKE_THRESHOLD_MS``."""
    samples = successful_latencies(history)
    if not samples:
        return 0.0
    return sum(1 for s in samples if s > SPIKE_THRESHOLD_MS) / len(samples)


def stability_score(history: Sequence[ProbeOutcome]) -> int:
    """Composite 0–100 consistency score, ``-1`` without successful probes.

    Weighted blend of four sub-scores, each clamped to ``[0, 100]``:

    1. p95:         ``100 * (1 - p95 / 5000)``          (0.30)
    2. jitter:      ``100 * (1 - jitter / 2000)``       (0.30)
    3. spikes:      ``100 * (1 - spike_rate)``          (0.20)
    4. reliability: ``uptime``                          (0.20)

    Tail latency and erratic timing weigh as much as raw speed, so an
    endpoint that is fast on average but stalls for seconds now and then
    scores below a steady mid-speed one.
    """
    if not successful_latencies(history):
        return -1

    p95_score = _clamp_score(100.0 * (1.0 - percentile_95(history) / _P95_CEILING_MS))
    jitter_score = _clamp_score(100.0 * (1.0 - jitter(history) / _JITTER_CEILING_MS))
    spike_score = _clamp_score(100.0 * (1.0 - spike_rate(history)))
    reliability_score = uptime(history)

    score = (
        _W_P95 * p95_score
        + _W_JITTER * jitter_score
        + _W_SPIKE * spike_score
        + _W_RELIABILITY * reliability_score
    )
    return round_half_up(score)


def latest_latency(history: Sequence[ProbeOutcome]) -> float:
    """Latency of the most recent probe if it succeeded, else ``math.inf``."""
    if not history:
        return math.inf
    last = history[-1]
    return last.elapsed_ms if last.ok else math.inf
