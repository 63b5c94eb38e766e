"""Domain entities for endpoint probing and health tracking.

Pure value objects — no framework dependencies, no I/O.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

# Capability tiers, best to worst.
TIER_ORDER: tuple[str, ...] = ("S+", "S", "A+", "A", "A-", "B+", "B", "C")

# Tier letter (as accepted by ``--tier``) -> the tiers it expands to.
TIER_LETTER_MAP: dict[str, tuple[str, ...]] = {
    "S": ("S+", "S"),
    "A": ("A+", "A", "A-"),
    "B": ("B+", "B"),
    "C": ("C",),
}

# ``last_error_code`` value recorded for rate-limited probes.
RATE_LIMIT_CODE = "429"


class ProbeOutcomeKind(str, enum.Enum):
    """Closed set of probe outcomes seen by the scoring engine."""

    SUCCESS = "success"
    AUTH_MISSING = "auth_missing"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    OTHER = "other"


class LifecycleStatus(str, enum.Enum):
    """Last observed coarse state of an endpoint."""

    PENDING = "pending"
    REACHABLE = "reachable"
    AUTH_MISSING = "auth_missing"
    RATE_LIMITED = "rate_limited"
    UNREACHABLE = "unreachable"
    TIMED_OUT = "timed_out"


class Verdict(str, enum.Enum):
    """Health verdict, declared healthiest first.

    Declaration order backs the "sort by verdict" column.
    """

    PERFECT = "Perfect"
    NORMAL = "Normal"
    SLOW = "Slow"
    SPIKY = "Spiky"
    VERY_SLOW = "Very Slow"
    OVERLOADED = "Overloaded"
    UNSTABLE = "Unstable"
    NOT_ACTIVE = "Not Active"
    PENDING = "Pending"


VERDICT_ORDER: tuple[Verdict, ...] = tuple(Verdict)


@dataclass(frozen=True)
class ProbeOutcome:
    """One recorded probe attempt.

    ``elapsed_ms`` is meaningful for every outcome: an auth rejection still
    measures reachability, a timeout records the time up to the abort.
    """

    elapsed_ms: int
    outcome: ProbeOutcomeKind
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ProbeOutcomeKind.SUCCESS


@dataclass(frozen=True)
class EndpointSnapshot:
    """Read-only view of an endpoint handed to the scoring engine."""

    rank: int
    provider_key: str
    model_id: str
    display_label: str
    capability_tier: str
    declared_score: str | None = None
    context_size_label: str | None = None
    lifecycle_status: LifecycleStatus = LifecycleStatus.PENDING
    last_error_code: str | None = None
    history: tuple[ProbeOutcome, ...] = ()

    @property
    def id(self) -> str:
        return f"{self.provider_key}/{self.model_id}"


@dataclass
class EndpointState:
    """Mutable per-endpoint record owned by the monitor.

    Created once from the static catalog, mutated in place after every
    probe, discarded on exit. Everything else reads :meth:`snapshot`.
    """

    rank: int
    provider_key: str
    model_id: str
    display_label: str
    capability_tier: str
    declared_score: str | None = None
    context_size_label: str | None = None
    lifecycle_status: LifecycleStatus = LifecycleStatus.PENDING
    last_error_code: str | None = None
    history: list[ProbeOutcome] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{self.provider_key}/{self.model_id}"

    def snapshot(self) -> EndpointSnapshot:
        return EndpointSnapshot(
            rank=self.rank,
            provider_key=self.provider_key,
            model_id=self.model_id,
            display_label=self.display_label,
            capability_tier=self.capability_tier,
            declared_score=self.declared_score,
            context_size_label=self.context_size_label,
            lifecycle_status=self.lifecycle_status,
            last_error_code=self.last_error_code,
            history=tuple(self.history),
        )
