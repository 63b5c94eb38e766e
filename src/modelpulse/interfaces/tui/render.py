"""Pure rendering of endpoint snapshots into rich renderables."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from rich.table import Table
from rich.text import Text

from modelpulse.domain.entities import EndpointSnapshot, LifecycleStatus, Verdict
from modelpulse.infrastructure.scoring import (
    SortColumn,
    SortDirection,
    average_latency,
    best_per_tier,
    filter_by_tier_letter,
    latest_latency,
    sort_endpoints,
    stability_score,
    uptime,
    verdict,
)

ABSENT = "—"

# Keyboard key -> sort column.
SORT_KEYS: dict[str, SortColumn] = {
    "r": SortColumn.RANK,
    "t": SortColumn.TIER,
    "o": SortColumn.ORIGIN,
    "m": SortColumn.NAME,
    "l": SortColumn.LATEST_PING,
    "a": SortColumn.AVERAGE_LATENCY,
    "s": SortColumn.DECLARED_SCORE,
    "n": SortColumn.CONTEXT_SIZE,
    "h": SortColumn.LIFECYCLE_STATUS,
    "v": SortColumn.VERDICT,
    "u": SortColumn.UPTIME,
    "b": SortColumn.STABILITY,
}

_COLUMNS: tuple[tuple[str, SortColumn, str], ...] = (
    ("Rank", SortColumn.RANK, "right"),
    ("Tier", SortColumn.TIER, "center"),
    ("Origin", SortColumn.ORIGIN, "left"),
    ("Model", SortColumn.NAME, "left"),
    ("Latest", SortColumn.LATEST_PING, "right"),
    ("Avg", SortColumn.AVERAGE_LATENCY, "right"),
    ("Score", SortColumn.DECLARED_SCORE, "right"),
    ("Ctx", SortColumn.CONTEXT_SIZE, "right"),
    ("Status", SortColumn.LIFECYCLE_STATUS, "left"),
    ("Verdict", SortColumn.VERDICT, "left"),
    ("Up%", SortColumn.UPTIME, "right"),
    ("Stability", SortColumn.STABILITY, "right"),
)

_VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.PERFECT: "bold green",
    Verdict.NORMAL: "green",
    Verdict.SLOW: "yellow",
    Verdict.SPIKY: "orange3",
    Verdict.VERY_SLOW: "red",
    Verdict.OVERLOADED: "red",
    Verdict.UNSTABLE: "bold red",
    Verdict.NOT_ACTIVE: "dim",
    Verdict.PENDING: "dim",
}

_STATUS_LABELS: dict[LifecycleStatus, str] = {
    LifecycleStatus.PENDING: "…",
    LifecycleStatus.REACHABLE: "UP",
    LifecycleStatus.AUTH_MISSING: "NO KEY",
    LifecycleStatus.RATE_LIMITED: "429",
    LifecycleStatus.UNREACHABLE: "DOWN",
    LifecycleStatus.TIMED_OUT: "TIMEOUT",
}


def format_latency(value: float) -> str:
    """``1234.5`` -> ``"1235 ms"``; infinity -> ``"—"``."""
    if math.isinf(value):
        return ABSENT
    return f"{value:.0f} ms"


def format_stability(score: int) -> str:
    return ABSENT if score < 0 else str(score)


def format_status(endpoint: EndpointSnapshot) -> str:
    label = _STATUS_LABELS[endpoint.lifecycle_status]
    if (
        endpoint.lifecycle_status is LifecycleStatus.UNREACHABLE
        and endpoint.last_error_code
    ):
        return f"{label} {endpoint.last_error_code}"
    return label


@dataclass
class DashboardView:
    """UI state owned by the dashboard loop."""

    cursor: int = 0
    sort_column: SortColumn = SortColumn.AVERAGE_LATENCY
    sort_direction: SortDirection = SortDirection.ASCENDING
    tier_letter: str | None = None
    favorites: frozenset[str] = field(default_factory=frozenset)
    favorites_only: bool = False

    def toggle_sort(self, column: SortColumn) -> None:
        """Same column flips the direction; a new column starts ascending."""
        if column is self.sort_column:
            self.sort_direction = self.sort_direction.flipped()
        else:
            self.sort_column = column
            self.sort_direction = SortDirection.ASCENDING

    def move_cursor(self, delta: int, size: int) -> None:
        if size <= 0:
            self.cursor = 0
            return
        self.cursor = max(0, min(size - 1, self.cursor + delta))

    def visible(self, snapshots: Sequence[EndpointSnapshot]) -> list[EndpointSnapshot]:
        """Filter and sort *snapshots* the way the table shows them."""
        rows: Sequence[EndpointSnapshot] = snapshots
        if self.tier_letter:
            rows = filter_by_tier_letter(rows, self.tier_letter) or []
        if self.favorites_only:
            rows = [e for e in rows if e.id in self.favorites]
        return sort_endpoints(rows, self.sort_column, self.sort_direction)


def _header(label: str, column: SortColumn, view: DashboardView) -> str:
    if column is not view.sort_column:
        return label
    arrow = "▲" if view.sort_direction is SortDirection.ASCENDING else "▼"
    return f"{label} {arrow}"


def render_table(
    rows: Sequence[EndpointSnapshot],
    view: DashboardView,
    provider_names: Mapping[str, str] | None = None,
) -> Table:
    """Build the dashboard table for already filtered and sorted *rows*."""
    provider_names = provider_names or {}
    leaders = {e.id for e in best_per_tier(rows).values()}

    table = Table(show_header=True, header_style="bold cyan", expand=True)
    for label, column, justify in _COLUMNS:
        table.add_column(_header(label, column, view), justify=justify)

    for index, endpoint in enumerate(rows):
        health = verdict(endpoint)
        name = endpoint.display_label
        if endpoint.id in view.favorites:
            name = f"★ {name}"
        if endpoint.id in leaders:
            name = f"{name} [bold green]◆[/bold green]"
        style = _VERDICT_STYLES[health]
        table.add_row(
            str(endpoint.rank),
            endpoint.capability_tier,
            provider_names.get(endpoint.provider_key, endpoint.provider_key),
            name,
            format_latency(latest_latency(endpoint.history)),
            format_latency(average_latency(endpoint.history)),
            endpoint.declared_score or ABSENT,
            endpoint.context_size_label or ABSENT,
            format_status(endpoint),
            f"[{style}]{health.value}[/{style}]",
            f"{uptime(endpoint.history)}%",
            format_stability(stability_score(endpoint.history)),
            style="reverse" if index == view.cursor else None,
        )
    return table


def render_footer(metrics: Mapping[str, object], view: DashboardView) -> Text:
    rounds = metrics.get("rounds", {})
    completed = rounds.get("rounds", 0) if isinstance(rounds, Mapping) else 0
    parts = [
        f"rounds {completed}",
        f"sort {view.sort_column.value} {view.sort_direction.value}",
    ]
    if view.tier_letter:
        parts.append(f"tier {view.tier_letter}")
    if view.favorites_only:
        parts.append("favorites")
    keys = "↑↓ move · Enter select · f favorite · F favorites only · q quit"
    return Text(" · ".join(parts) + "   " + keys, style="dim")
