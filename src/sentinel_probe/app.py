"""
Probe application wiring.

Builds the store client, stats aggregator, failover monitor, probe
executor, scheduler and reporter from settings, and runs them on one
event loop:
- Discovery runs first; a DiscoveryError propagates before any probe
- The scheduler runs in the foreground, the reporter as a background task
- SIGINT/SIGTERM stop the scheduler after its current cycle
"""

import asyncio
import contextlib
import functools
import logging
import signal
from dataclasses import dataclass

from sentinel_probe.backoff import BackoffPolicy
from sentinel_probe.client import RedisSentinelClient
from sentinel_probe.config import ProbeSettings
from sentinel_probe.failover import FailoverMonitor
from sentinel_probe.probe import ProbeExecutor
from sentinel_probe.protocols import StoreClientProtocol
from sentinel_probe.reporter import Reporter
from sentinel_probe.scheduler import ProbeScheduler
from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import StatsSnapshot

logger = logging.getLogger(__name__)


@dataclass
class ProbeApp:
    """All probe components, sharing one client and one aggregator."""

    settings: ProbeSettings
    client: StoreClientProtocol
    stats: StatsAggregator
    monitor: FailoverMonitor
    executor: ProbeExecutor
    scheduler: ProbeScheduler
    reporter: Reporter

    async def run(
        self, cycles: int | None = None, install_signal_handlers: bool = True
    ) -> StatsSnapshot:
        """
        Discover the master, then probe until stopped.

        Args:
            cycles: Stop after this many probe cycles (None runs forever)
            install_signal_handlers: Register SIGINT/SIGTERM to stop the loop

        Returns:
            The final stats snapshot.

        Raises:
            DiscoveryError: Discovery failed at startup or reconnects were
                exhausted.
        """
        loop = asyncio.get_running_loop()
        signals = (signal.SIGINT, signal.SIGTERM) if install_signal_handlers else ()
        for sig in signals:
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))

        reporter_task: asyncio.Task | None = None
        try:
            await self.monitor.start()
            reporter_task = asyncio.create_task(self.reporter.run())
            await self.scheduler.run(cycles=cycles)
        finally:
            self.reporter.stop()
            if reporter_task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await reporter_task
            await self.monitor.stop()
            await self.client.close()
            for sig in signals:
                loop.remove_signal_handler(sig)

        return self.reporter.report()

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.warning(f"Received {sig.name}, shutting down...")
        self.scheduler.stop()


def create_probe_app(
    settings: ProbeSettings, client: StoreClientProtocol | None = None
) -> ProbeApp:
    """
    Build a ProbeApp from settings.

    Args:
        settings: Loaded probe settings
        client: Optional pre-built store client. If None, a
            RedisSentinelClient is created from the settings.

    Returns:
        ProbeApp ready to run().
    """
    if client is None:
        client = RedisSentinelClient.from_settings(settings)

    stats = StatsAggregator()
    monitor = FailoverMonitor(
        client,
        stats,
        master_name=settings.master_name,
        startup_policy=BackoffPolicy(
            base_delay_ms=settings.reconnect_base_delay_ms,
            max_delay_ms=settings.reconnect_max_delay_ms,
            max_attempts=settings.startup_attempts,
        ),
        reconnect_policy=BackoffPolicy(
            base_delay_ms=settings.reconnect_base_delay_ms,
            max_delay_ms=settings.reconnect_max_delay_ms,
            max_attempts=settings.max_reconnect_attempts,
        ),
    )
    executor = ProbeExecutor(
        client,
        key_prefix=settings.key_prefix,
        key_bytes=settings.key_bytes,
        value_bytes=settings.value_bytes,
        ttl_seconds=settings.ttl_seconds,
    )
    scheduler = ProbeScheduler(executor, stats, monitor, interval_ms=settings.interval_ms)
    reporter = Reporter(stats, interval_ms=settings.report_interval_ms)

    return ProbeApp(
        settings=settings,
        client=client,
        stats=stats,
        monitor=monitor,
        executor=executor,
        scheduler=scheduler,
        reporter=reporter,
    )
