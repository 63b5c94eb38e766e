"""Tests for the zero-impact MetricsCollector."""

from __future__ import annotations

from modelpulse.domain.entities import ProbeOutcome, ProbeOutcomeKind
from modelpulse.infrastructure.metrics import MetricsCollector, ProviderStats, RoundStats


class TestProviderStats:
    def test_default_values(self) -> None:
        stats = ProviderStats()
        assert stats.probes == 0
        assert stats.outcomes == {}
        assert stats.total_elapsed_ms == 0

    def test_snapshot_no_probes(self) -> None:
        snap = ProviderStats().snapshot()
        assert snap["probes"] == 0
        assert snap["successes"] == 0
        assert snap["avg_elapsed_ms"] == 0.0

    def test_snapshot_with_data(self) -> None:
        stats = ProviderStats(
            probes=4,
            outcomes={"success": 3, "timeout": 1},
            total_elapsed_ms=2_000,
        )
        snap = stats.snapshot()
        assert snap["probes"] == 4
        assert snap["successes"] == 3
        assert snap["avg_elapsed_ms"] == 500.0


class TestRoundStats:
    def test_snapshot_no_rounds(self) -> None:
        snap = RoundStats().snapshot()
        assert snap["rounds"] == 0
        assert snap["avg_duration_ms"] == 0.0

    def test_snapshot_with_data(self) -> None:
        snap = RoundStats(
            rounds=2, failed_rounds=1, total_duration_ns=3_000_000_000
        ).snapshot()
        assert snap["failed_rounds"] == 1
        assert snap["avg_duration_ms"] == 1500.0


class TestMetricsCollector:
    def test_record_probe(self) -> None:
        mc = MetricsCollector()
        mc.record_probe("groq", ProbeOutcome(120, ProbeOutcomeKind.SUCCESS, 200))
        mc.record_probe("groq", ProbeOutcome(6000, ProbeOutcomeKind.TIMEOUT))

        snap = mc.snapshot()["providers"]["groq"]
        assert snap["probes"] == 2
        assert snap["successes"] == 1
        assert snap["outcomes"] == {"success": 1, "timeout": 1}
        assert snap["avg_elapsed_ms"] == 3060.0

    def test_total_probes_across_providers(self) -> None:
        mc = MetricsCollector()
        mc.record_probe("groq", ProbeOutcome(1, ProbeOutcomeKind.SUCCESS))
        mc.record_probe("nvidia", ProbeOutcome(1, ProbeOutcomeKind.OTHER))
        assert mc.total_probes == 2

    def test_record_round(self) -> None:
        mc = MetricsCollector()
        mc.record_round(1_000_000)
        mc.record_round(3_000_000, failed=True)
        rounds = mc.snapshot()["rounds"]
        assert rounds["rounds"] == 2
        assert rounds["failed_rounds"] == 1
        assert rounds["avg_duration_ms"] == 2.0

    def test_snapshot_empty_collector(self) -> None:
        snap = MetricsCollector().snapshot()
        assert snap["providers"] == {}
        assert snap["uptime_seconds"] >= 0

    def test_providers_sorted_alphabetically(self) -> None:
        mc = MetricsCollector()
        for key in ("nvidia", "cerebras", "groq"):
            mc.record_probe(key, ProbeOutcome(1, ProbeOutcomeKind.SUCCESS))
        assert list(mc.snapshot()["providers"]) == ["cerebras", "groq", "nvidia"]
