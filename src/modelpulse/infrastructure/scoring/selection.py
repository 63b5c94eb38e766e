"""Best-endpoint selection and tier filtering."""

from __future__ import annotations

import math
from collections.abc import Sequence

from modelpulse.domain.entities.endpoint import (
    TIER_LETTER_MAP,
    EndpointSnapshot,
    LifecycleStatus,
)
from modelpulse.infrastructure.scoring.latency import (
    average_latency,
    stability_score,
    uptime,
)


def _selection_key(endpoint: EndpointSnapshot) -> tuple[int, float, int, int]:
    reachable = endpoint.lifecycle_status is LifecycleStatus.REACHABLE
    return (
        0 if reachable else 1,
        average_latency(endpoint.history),
        -stability_score(endpoint.history),
        -uptime(endpoint.history),
    )


def pick_best(endpoints: Sequence[EndpointSnapshot]) -> EndpointSnapshot | None:
    """Pick the single best endpoint.

    Lexicographic order, each key breaking ties of the previous one:

    1. Currently reachable beats everything else.
    2. Lower average latency.
    3. Higher stability score.
    4. Higher uptime.

    Full ties resolve to the earliest endpoint in *endpoints*.
    Returns ``None`` for an empty input.
    """
    if not endpoints:
        return None
    return min(endpoints, key=_selection_key)


def filter_by_tier_letter(
    endpoints: Sequence[EndpointSnapshot], letter: str
) -> list[EndpointSnapshot] | None:
    """Keep endpoints whose tier belongs to the tier *letter* family.

    ``"A"`` keeps ``A+``, ``A`` and ``A-``. The letter is case-insensitive.
    Returns ``None`` for an unknown letter so callers can tell an invalid
    filter from one that matched nothing.
    """
    allowed = TIER_LETTER_MAP.get(letter.upper())
    if allowed is None:
        return None
    return [e for e in endpoints if e.capability_tier in allowed]


def best_per_tier(endpoints: Sequence[EndpointSnapshot]) -> dict[str, EndpointSnapshot]:
    """Fastest reachable endpoint (by average latency) of every tier."""
    leaders: dict[str, tuple[float, EndpointSnapshot]] = {}
    for endpoint in endpoints:
        if endpoint.lifecycle_status is not LifecycleStatus.REACHABLE:
            continue
        avg = average_latency(endpoint.history)
        if math.isinf(avg):
            continue
        current = leaders.get(endpoint.capability_tier)
        if current is None or avg < current[0]:
            leaders[endpoint.capability_tier] = (avg, endpoint)
    return {tier: endpoint for tier, (_, endpoint) in leaders.items()}
