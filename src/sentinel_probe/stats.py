"""
Running statistics for the reliability probe.

StatsAggregator owns the only mutable copy of the probe statistics. It is
updated by the scheduler (one call per probe cycle) and the failover
monitor (one call per master switch), and read through snapshot().

All updates are synchronous and run on the event loop thread, so a
snapshot can never observe a half-applied update.
"""

from dataclasses import replace
from datetime import datetime

from sentinel_probe.types import FailoverEvent, ProbeOutcome, ProbeResult, StatsSnapshot


class StatsAggregator:
    """
    Always-consistent running summary of probe outcomes.

    Invariant: total_attempts == success_count + fail_count after every update.

    mean_latency_ms is the mean over successful cycles only; mismatches and
    errors never move it.

    Example:
        stats = StatsAggregator()
        stats.record_outcome(outcome)
        print(stats.snapshot().mean_latency_ms)
    """

    def __init__(self, started_at: datetime | None = None) -> None:
        self._stats = StatsSnapshot(started_at=started_at or datetime.now())

    def record_outcome(self, outcome: ProbeOutcome) -> None:
        """Count one probe cycle."""
        s = self._stats
        if outcome.result == ProbeResult.SUCCESS:
            mean = (s.mean_latency_ms * s.success_count + outcome.latency_ms) / (
                s.success_count + 1
            )
            self._stats = replace(
                s,
                total_attempts=s.total_attempts + 1,
                success_count=s.success_count + 1,
                mean_latency_ms=mean,
            )
        elif outcome.result == ProbeResult.MISMATCH:
            self._stats = replace(
                s,
                total_attempts=s.total_attempts + 1,
                fail_count=s.fail_count + 1,
                mismatch_count=s.mismatch_count + 1,
            )
        else:
            self._stats = replace(
                s,
                total_attempts=s.total_attempts + 1,
                fail_count=s.fail_count + 1,
                error_count=s.error_count + 1,
            )

    def record_failover(self, event: FailoverEvent) -> None:
        """Remember when the master last switched."""
        self._stats = replace(
            self._stats,
            last_failover_at=event.timestamp,
            failover_count=self._stats.failover_count + 1,
        )

    def snapshot(self) -> StatsSnapshot:
        """Return the current statistics as an immutable value."""
        return self._stats
