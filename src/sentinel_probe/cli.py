"""Sentinel probe CLI.

Commands:
- run: Probe the master continuously until interrupted
- once: Run a fixed number of probe cycles and print a summary

Options fall back to SENTINEL_PROBE_* environment variables (see
ProbeSettings). Exit status is 1 on a fatal discovery failure and 2 on
invalid settings.
"""

import asyncio
import json
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from sentinel_probe.app import create_probe_app
from sentinel_probe.config import ProbeSettings
from sentinel_probe.exceptions import DiscoveryError
from sentinel_probe.reporter import render_table
from sentinel_probe.types import StatsSnapshot

app = typer.Typer(
    name="sentinel-probe",
    help="Continuous reliability probe for Redis behind Sentinel",
    no_args_is_help=True,
)

logger = logging.getLogger("sentinel_probe")


def configure_logging(level: str) -> None:
    """Send log records to the console through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_settings(**overrides: object) -> ProbeSettings:
    """Settings from the environment, with CLI options taking precedence."""
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return ProbeSettings(**values)
    except ValidationError as e:
        Console(stderr=True).print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(2)


def _probe(settings: ProbeSettings, cycles: int | None) -> StatsSnapshot:
    configure_logging(settings.log_level)
    probe_app = create_probe_app(settings)
    try:
        return asyncio.run(probe_app.run(cycles=cycles))
    except DiscoveryError as e:
        logger.critical(f"Fatal error: {e}")
        raise typer.Exit(1)


@app.command("run")
def run_probe(
    sentinel: list[str] = typer.Option(
        None, "--sentinel", "-s", help="Sentinel address host:port (repeatable)"
    ),
    master: str = typer.Option(None, "--master", "-m", help="Sentinel master group name"),
    password: str = typer.Option(None, "--password", help="Redis password"),
    interval: int = typer.Option(None, "--interval", "-i", help="Milliseconds between probe cycles"),
    report_interval: int = typer.Option(
        None, "--report-interval", help="Milliseconds between summary lines"
    ),
    log_level: str = typer.Option(None, "--log-level", help="Logging level (INFO, DEBUG, ...)"),
) -> None:
    """
    Probe the master continuously.

    Runs until interrupted with Ctrl+C, or until discovery fails for good.

    Environment variables:
        SENTINEL_PROBE_SENTINELS: Comma-separated sentinel addresses
        SENTINEL_PROBE_MASTER_NAME: Master group name
        SENTINEL_PROBE_PASSWORD: Redis password
    """
    settings = _load_settings(
        sentinels=",".join(sentinel) if sentinel else None,
        master_name=master,
        password=password,
        interval_ms=interval,
        report_interval_ms=report_interval,
        log_level=log_level,
    )
    _probe(settings, cycles=None)


@app.command("once")
def run_once(
    cycles: int = typer.Option(1, "--cycles", "-n", min=1, help="Probe cycles to run"),
    sentinel: list[str] = typer.Option(
        None, "--sentinel", "-s", help="Sentinel address host:port (repeatable)"
    ),
    master: str = typer.Option(None, "--master", "-m", help="Sentinel master group name"),
    password: str = typer.Option(None, "--password", help="Redis password"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output summary as JSON"),
) -> None:
    """
    Run a few probe cycles and print a summary.

    Exits with status 1 if any cycle failed.
    """
    settings = _load_settings(
        sentinels=",".join(sentinel) if sentinel else None,
        master_name=master,
        password=password,
    )
    snapshot = _probe(settings, cycles=cycles)

    if json_output:
        print(json.dumps(snapshot.to_dict(), indent=2, default=str))
    else:
        Console().print(render_table(snapshot))

    if snapshot.fail_count:
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
