"""Column sorting for the endpoint table.

Every sort returns a new list and leaves the input untouched. Python's
sort is stable in both directions, so endpoints with equal keys keep their
relative input order and the table does not flicker between frames.
"""

from __future__ import annotations

import enum
import math
import re
from collections.abc import Callable, Sequence
from typing import Any

from modelpulse.domain.entities.endpoint import TIER_ORDER, EndpointSnapshot
from modelpulse.infrastructure.scoring.latency import (
    average_latency,
    latest_latency,
    stability_score,
    uptime,
)
from modelpulse.infrastructure.scoring.verdict import verdict, verdict_index

_ABSENT_MARKERS = frozenset({"", "-", "—"})
_CONTEXT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([km])\s*$", re.IGNORECASE)


class SortColumn(str, enum.Enum):
    RANK = "rank"
    TIER = "tier"
    ORIGIN = "origin"
    NAME = "name"
    LATEST_PING = "latest_ping"
    AVERAGE_LATENCY = "average_latency"
    DECLARED_SCORE = "declared_score"
    CONTEXT_SIZE = "context_size"
    LIFECYCLE_STATUS = "lifecycle_status"
    VERDICT = "verdict"
    UPTIME = "uptime"
    STABILITY = "stability"


class SortDirection(str, enum.Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    def flipped(self) -> SortDirection:
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


def tier_index(tier: str) -> int:
    """Position of *tier* in ``TIER_ORDER``; unknown tiers rank last."""
    try:
        return TIER_ORDER.index(tier)
    except ValueError:
        return len(TIER_ORDER)


def parse_declared_score(score: str | None) -> float:
    """Parse ``"49.2%"`` into ``49.2``. Absent or unparseable -> ``0.0``."""
    if score is None or score.strip() in _ABSENT_MARKERS:
        return 0.0
    try:
        value = float(score.strip().rstrip("%"))
    except ValueError:
        return 0.0
    # float() also accepts "nan" and "inf".
    return value if math.isfinite(value) else 0.0


def parse_context_size(label: str | None) -> float:
    """Parse a context label into thousands of tokens.

    ``"128k"`` -> ``128``, ``"1m"`` -> ``1000``. Absent or unparseable -> ``0``.
    """
    if label is None:
        return 0.0
    match = _CONTEXT_RE.match(label)
    if not match:
        return 0.0
    value = float(match.group(1))
    return value * 1000 if match.group(2).lower() == "m" else value


_SORT_KEYS: dict[SortColumn, Callable[[EndpointSnapshot], Any]] = {
    SortColumn.RANK: lambda e: e.rank,
    SortColumn.TIER: lambda e: tier_index(e.capability_tier),
    SortColumn.ORIGIN: lambda e: e.provider_key,
    SortColumn.NAME: lambda e: e.display_label.casefold(),
    SortColumn.LATEST_PING: lambda e: latest_latency(e.history),
    SortColumn.AVERAGE_LATENCY: lambda e: average_latency(e.history),
    SortColumn.DECLARED_SCORE: lambda e: parse_declared_score(e.declared_score),
    SortColumn.CONTEXT_SIZE: lambda e: parse_context_size(e.context_size_label),
    SortColumn.LIFECYCLE_STATUS: lambda e: e.lifecycle_status.value,
    SortColumn.VERDICT: lambda e: verdict_index(verdict(e)),
    SortColumn.UPTIME: lambda e: uptime(e.history),
    SortColumn.STABILITY: lambda e: stability_score(e.history),
}


def sort_endpoints(
    endpoints: Sequence[EndpointSnapshot],
    column: SortColumn,
    direction: SortDirection = SortDirection.ASCENDING,
) -> list[EndpointSnapshot]:
    """Sort *endpoints* by *column*.

    Infinity is a magnitude, not a flag: endpoints with no usable latency
    sink to the bottom ascending and rise to the top descending
    ("worst first").
    """
    key = _SORT_KEYS[SortColumn(column)]
    return sorted(
        endpoints,
        key=key,
        reverse=SortDirection(direction) is SortDirection.DESCENDING,
    )
