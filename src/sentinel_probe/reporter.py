"""Periodic health summaries built from stats snapshots."""

import asyncio
import logging

from rich.table import Table

from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import StatsSnapshot

logger = logging.getLogger(__name__)


def format_summary(snapshot: StatsSnapshot) -> str:
    """One-line summary of a snapshot."""
    return (
        f"Stats: Total={snapshot.total_attempts} | "
        f"Success={snapshot.success_count} | "
        f"Fail={snapshot.fail_count} | "
        f"AvgLatency={snapshot.mean_latency_ms:.2f}ms"
    )


def render_table(snapshot: StatsSnapshot) -> Table:
    """Rich table with the full snapshot, for end-of-run output."""
    table = Table(title="Probe Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total", str(snapshot.total_attempts))
    table.add_row("Success", f"[green]{snapshot.success_count}[/green]")
    fail_style = "red" if snapshot.fail_count else "green"
    table.add_row("Fail", f"[{fail_style}]{snapshot.fail_count}[/{fail_style}]")
    table.add_row("  Mismatch", str(snapshot.mismatch_count))
    table.add_row("  Error", str(snapshot.error_count))
    table.add_row("Success rate", f"{snapshot.success_rate:.1%}")
    table.add_row("Avg latency", f"{snapshot.mean_latency_ms:.2f}ms")
    table.add_row("Failovers", str(snapshot.failover_count))
    last = snapshot.last_failover_at
    table.add_row("Last failover", last.strftime("%Y-%m-%d %H:%M:%S") if last else "-")
    return table


class Reporter:
    """Logs a summary line from the stats every interval until stopped."""

    def __init__(self, stats: StatsAggregator, interval_ms: int = 30000) -> None:
        self.stats = stats
        self.interval = interval_ms / 1000
        self._shutdown = asyncio.Event()

    def stop(self) -> None:
        self._shutdown.set()

    def report(self) -> StatsSnapshot:
        snapshot = self.stats.snapshot()
        logger.info(format_summary(snapshot))
        return snapshot

    async def run(self) -> None:
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                self.report()
