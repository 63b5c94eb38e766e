"""Zero-impact in-memory probe metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop — no locks, no I/O, no disk, no external dependencies.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from modelpulse.domain.entities.endpoint import ProbeOutcome, ProbeOutcomeKind


@dataclass
class ProviderStats:
    """Accumulated probe statistics for a single provider."""

    probes: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)
    total_elapsed_ms: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = round(self.total_elapsed_ms / self.probes, 1) if self.probes else 0.0
        return {
            "probes": self.probes,
            "successes": self.outcomes.get(ProbeOutcomeKind.SUCCESS.value, 0),
            "outcomes": dict(sorted(self.outcomes.items())),
            "avg_elapsed_ms": avg_ms,
        }


@dataclass
class RoundStats:
    """Accumulated statistics for probe rounds."""

    rounds: int = 0
    failed_rounds: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.rounds / 1_000_000, 1)
            if self.rounds
            else 0.0
        )
        return {
            "rounds": self.rounds,
            "failed_rounds": self.failed_rounds,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector.

    Thread-safety is not required — the async event loop is
    single-threaded, so plain integer increments are atomic enough.
    """

    _providers: dict[str, ProviderStats] = field(default_factory=dict)
    _rounds: RoundStats = field(default_factory=RoundStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_probe(self, provider_key: str, outcome: ProbeOutcome) -> None:
        """Record one completed probe."""
        stats = self._providers.get(provider_key)
        if stats is None:
            stats = ProviderStats()
            self._providers[provider_key] = stats

        stats.probes += 1
        stats.total_elapsed_ms += outcome.elapsed_ms
        kind = outcome.outcome.value
        stats.outcomes[kind] = stats.outcomes.get(kind, 0) + 1

    def record_round(self, duration_ns: int, *, failed: bool = False) -> None:
        """Record one probe round across the catalog."""
        self._rounds.rounds += 1
        self._rounds.total_duration_ns += duration_ns
        if failed:
            self._rounds.failed_rounds += 1

    @property
    def total_probes(self) -> int:
        return sum(s.probes for s in self._providers.values())

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        return {
            "uptime_seconds": uptime_s,
            "providers": {
                name: stats.snapshot()
                for name, stats in sorted(self._providers.items())
            },
            "rounds": self._rounds.snapshot(),
        }
