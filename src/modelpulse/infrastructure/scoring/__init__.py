from .latency import (
    average_latency,
    jitter,
    latest_latency,
    percentile_95,
    stability_score,
    uptime,
)
from .ordering import SortColumn, SortDirection, sort_endpoints
from .selection import best_per_tier, filter_by_tier_letter, pick_best
from .verdict import verdict

__all__ = [
    "SortColumn",
    "SortDirection",
    "average_latency",
    "best_per_tier",
    "filter_by_tier_letter",
    "jitter",
    "latest_latency",
    "percentile_95",
    "pick_best",
    "sort_endpoints",
    "stability_score",
    "uptime",
    "verdict",
]
