from .catalog import CatalogModel, Provider
from .endpoint import (
    RATE_LIMIT_CODE,
    TIER_LETTER_MAP,
    TIER_ORDER,
    VERDICT_ORDER,
    EndpointSnapshot,
    EndpointState,
    LifecycleStatus,
    ProbeOutcome,
    ProbeOutcomeKind,
    Verdict,
)
from .selection import EndpointSelection, HandoffResult

__all__ = [
    "RATE_LIMIT_CODE",
    "TIER_LETTER_MAP",
    "TIER_ORDER",
    "VERDICT_ORDER",
    "CatalogModel",
    "EndpointSelection",
    "EndpointSnapshot",
    "EndpointState",
    "HandoffResult",
    "LifecycleStatus",
    "ProbeOutcome",
    "ProbeOutcomeKind",
    "Provider",
    "Verdict",
]
