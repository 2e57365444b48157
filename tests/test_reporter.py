"""Tests for the periodic reporter."""

import asyncio
import logging
from datetime import datetime

import pytest
from rich.console import Console

from sentinel_probe.reporter import Reporter, format_summary, render_table
from sentinel_probe.types import StatsSnapshot


class TestFormatting:
    """Tests for format_summary() and render_table()."""

    def test_format_summary(self):
        snapshot = StatsSnapshot(
            total_attempts=10, success_count=9, fail_count=1, mean_latency_ms=3.456
        )
        assert format_summary(snapshot) == (
            "Stats: Total=10 | Success=9 | Fail=1 | AvgLatency=3.46ms"
        )

    def test_render_table(self):
        snapshot = StatsSnapshot(
            total_attempts=4,
            success_count=3,
            fail_count=1,
            error_count=1,
            mean_latency_ms=2.5,
            failover_count=1,
            last_failover_at=datetime(2026, 2, 3, 4, 5, 6),
        )
        console = Console(record=True, width=80)
        console.print(render_table(snapshot))
        text = console.export_text()

        assert "Probe Summary" in text
        assert "75.0%" in text
        assert "2.50ms" in text
        assert "2026-02-03 04:05:06" in text


class TestReporter:
    """Tests for Reporter."""

    def test_report_logs_summary(self, stats, caplog):
        caplog.set_level(logging.INFO, logger="sentinel_probe")
        snapshot = Reporter(stats).report()

        assert snapshot.total_attempts == 0
        assert "Stats: Total=0" in caplog.text

    @pytest.mark.asyncio
    async def test_run_reports_each_interval(self, stats, caplog):
        caplog.set_level(logging.INFO, logger="sentinel_probe")
        reporter = Reporter(stats, interval_ms=10)

        task = asyncio.create_task(reporter.run())
        await asyncio.sleep(0.05)
        reporter.stop()
        await asyncio.wait_for(task, timeout=1)

        assert caplog.text.count("Stats: Total=") >= 2

    @pytest.mark.asyncio
    async def test_stop_ends_run_promptly(self, stats):
        reporter = Reporter(stats, interval_ms=60000)
        task = asyncio.create_task(reporter.run())
        await asyncio.sleep(0)
        reporter.stop()
        await asyncio.wait_for(task, timeout=1)
        assert task.done()
