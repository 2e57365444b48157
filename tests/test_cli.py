"""Tests for the sentinel-probe CLI."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from sentinel_probe.cli import app
from sentinel_probe.exceptions import DiscoveryError
from sentinel_probe.types import StatsSnapshot

runner = CliRunner()


@pytest.fixture
def probe_app():
    """Patch create_probe_app with a mock app whose run() is controllable."""
    mock_app = MagicMock()
    mock_app.run = AsyncMock(
        return_value=StatsSnapshot(total_attempts=3, success_count=3, mean_latency_ms=1.5)
    )
    with patch("sentinel_probe.cli.create_probe_app", return_value=mock_app) as factory:
        mock_app.factory = factory
        yield mock_app


class TestRun:
    """Tests for the run command."""

    def test_discovery_failure_exits_nonzero(self, probe_app):
        probe_app.run = AsyncMock(side_effect=DiscoveryError("mymaster", 10, "No master found"))

        result = runner.invoke(app, ["run", "--sentinel", "localhost:26379"])

        assert result.exit_code == 1

    def test_options_reach_settings(self, probe_app):
        result = runner.invoke(
            app,
            [
                "run",
                "-s",
                "s1:26379",
                "-s",
                "s2:26379",
                "--master",
                "cache",
                "--interval",
                "250",
            ],
        )

        assert result.exit_code == 0
        settings = probe_app.factory.call_args.args[0]
        assert settings.sentinel_addresses() == [("s1", 26379), ("s2", 26379)]
        assert settings.master_name == "cache"
        assert settings.interval_ms == 250
        probe_app.run.assert_awaited_once_with(cycles=None)

    def test_invalid_settings_exit_2(self, probe_app):
        result = runner.invoke(app, ["run", "--sentinel", "not-an-address"])

        assert result.exit_code == 2
        probe_app.run.assert_not_awaited()


class TestOnce:
    """Tests for the once command."""

    def test_json_summary(self, probe_app):
        result = runner.invoke(app, ["once", "--cycles", "3", "--json"])

        assert result.exit_code == 0
        assert '"total_attempts": 3' in result.output
        assert '"success_rate": 1.0' in result.output
        probe_app.run.assert_awaited_once_with(cycles=3)

    def test_table_summary(self, probe_app):
        result = runner.invoke(app, ["once"])

        assert result.exit_code == 0
        assert "Probe Summary" in result.output

    def test_failed_cycle_exits_1(self, probe_app):
        probe_app.run = AsyncMock(
            return_value=StatsSnapshot(total_attempts=1, fail_count=1, error_count=1)
        )

        result = runner.invoke(app, ["once", "--json"])

        assert result.exit_code == 1

    def test_discovery_failure_exits_1(self, probe_app):
        probe_app.run = AsyncMock(side_effect=DiscoveryError("mymaster", 10))

        result = runner.invoke(app, ["once"])

        assert result.exit_code == 1
