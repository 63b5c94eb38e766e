"""Tests for dashboard rendering and view state."""

from __future__ import annotations

import math

from rich.console import Console

from modelpulse.domain.entities import LifecycleStatus, ProbeOutcome, ProbeOutcomeKind
from modelpulse.infrastructure.scoring import SortColumn, SortDirection
from modelpulse.interfaces.tui.render import (
    SORT_KEYS,
    DashboardView,
    format_latency,
    format_stability,
    format_status,
    render_footer,
    render_table,
)


def _ok(ms: int) -> ProbeOutcome:
    return ProbeOutcome(elapsed_ms=ms, outcome=ProbeOutcomeKind.SUCCESS, status_code=200)


def _text(renderable) -> str:
    console = Console(width=200, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestFormatting:
    def test_latency(self) -> None:
        assert format_latency(1234) == "1234 ms"
        assert format_latency(math.inf) == "—"

    def test_stability_sentinel(self) -> None:
        assert format_stability(-1) == "—"
        assert format_stability(87) == "87"

    def test_status_includes_error_code_when_down(self, make_snapshot) -> None:
        down = make_snapshot(
            lifecycle_status=LifecycleStatus.UNREACHABLE, last_error_code="503"
        )
        assert format_status(down) == "DOWN 503"
        assert format_status(make_snapshot()) == "UP"


class TestSortKeys:
    def test_every_column_has_a_key(self) -> None:
        assert set(SORT_KEYS.values()) == set(SortColumn)

    def test_documented_bindings(self) -> None:
        assert SORT_KEYS["a"] is SortColumn.AVERAGE_LATENCY
        assert SORT_KEYS["b"] is SortColumn.STABILITY
        assert SORT_KEYS["h"] is SortColumn.LIFECYCLE_STATUS


class TestDashboardView:
    def test_same_column_flips_direction(self) -> None:
        view = DashboardView(sort_column=SortColumn.UPTIME)
        view.toggle_sort(SortColumn.UPTIME)
        assert view.sort_direction is SortDirection.DESCENDING
        view.toggle_sort(SortColumn.UPTIME)
        assert view.sort_direction is SortDirection.ASCENDING

    def test_new_column_resets_ascending(self) -> None:
        view = DashboardView(sort_direction=SortDirection.DESCENDING)
        view.toggle_sort(SortColumn.TIER)
        assert view.sort_column is SortColumn.TIER
        assert view.sort_direction is SortDirection.ASCENDING

    def test_cursor_is_clamped(self) -> None:
        view = DashboardView()
        view.move_cursor(-3, 5)
        assert view.cursor == 0
        view.move_cursor(10, 5)
        assert view.cursor == 4
        view.move_cursor(0, 2)
        assert view.cursor == 1
        view.move_cursor(1, 0)
        assert view.cursor == 0

    def test_visible_filters_and_sorts(self, make_snapshot) -> None:
        rows = [
            make_snapshot(model_id="c", capability_tier="C", history=(_ok(100),)),
            make_snapshot(model_id="s-slow", capability_tier="S", history=(_ok(900),)),
            make_snapshot(model_id="s-fast", capability_tier="S+", history=(_ok(200),)),
        ]
        view = DashboardView(tier_letter="S")
        assert [e.model_id for e in view.visible(rows)] == ["s-fast", "s-slow"]

    def test_visible_favorites_only(self, make_snapshot) -> None:
        rows = [make_snapshot(model_id="a"), make_snapshot(model_id="b")]
        view = DashboardView(favorites=frozenset({"nvidia/b"}), favorites_only=True)
        assert [e.model_id for e in view.visible(rows)] == ["b"]


class TestRenderTable:
    def test_twelve_columns(self, make_snapshot) -> None:
        table = render_table([make_snapshot()], DashboardView())
        assert len(table.columns) == 12
        assert table.row_count == 1

    def test_sort_arrow_on_active_column(self) -> None:
        view = DashboardView(
            sort_column=SortColumn.UPTIME, sort_direction=SortDirection.DESCENDING
        )
        headers = [c.header for c in render_table([], view).columns]
        assert "Up% ▼" in headers

    def test_sentinels_render_as_dash(self, make_snapshot) -> None:
        pending = make_snapshot(
            display_label="Waiting Model",
            lifecycle_status=LifecycleStatus.PENDING,
            declared_score=None,
        )
        out = _text(render_table([pending], DashboardView()))
        assert "Waiting Model" in out
        assert "—" in out
        assert "Pending" in out
        assert "inf" not in out

    def test_values_and_provider_name(self, make_snapshot) -> None:
        snap = make_snapshot(
            display_label="Fast One",
            declared_score="55.0%",
            context_size_label="128k",
            history=(_ok(120), _ok(140)),
        )
        out = _text(render_table([snap], DashboardView(), {"nvidia": "NVIDIA NIM"}))
        assert "NVIDIA NIM" in out
        assert "130 ms" in out
        assert "140 ms" in out
        assert "55.0%" in out
        assert "100%" in out
        assert "Perfect" in out

    def test_marks_cursor_row(self, make_snapshot) -> None:
        rows = [make_snapshot(model_id="a"), make_snapshot(model_id="b")]
        table = render_table(rows, DashboardView(cursor=1))
        assert table.rows[1].style == "reverse"
        assert table.rows[0].style is None

    def test_marks_favorites_and_tier_leaders(self, make_snapshot) -> None:
        rows = [
            make_snapshot(model_id="a", display_label="Alpha", history=(_ok(100),)),
            make_snapshot(model_id="b", display_label="Beta", history=(_ok(300),)),
        ]
        view = DashboardView(favorites=frozenset({"nvidia/b"}))
        out = _text(render_table(rows, view))
        assert "Alpha ◆" in out
        assert "★ Beta" in out
        assert "Beta ◆" not in out


class TestRenderFooter:
    def test_shows_rounds_and_sort(self) -> None:
        view = DashboardView(tier_letter="A", favorites_only=True)
        footer = render_footer({"rounds": {"rounds": 7}}, view)
        assert "rounds 7" in footer.plain
        assert "sort average_latency asc" in footer.plain
        assert "tier A" in footer.plain
        assert "favorites" in footer.plain
