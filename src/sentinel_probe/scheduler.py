"""
ProbeScheduler: drives probe cycles at a fixed cadence.

- Runs one cycle at a time; the next cycle starts only after the previous
  one settled and the fixed interval elapsed
- Records each outcome in the StatsAggregator and logs it
- Checks the failover monitor for a fatal discovery error before each cycle
- Uses an asyncio.Event for shutdown, waited on with a timeout so the
  inter-cycle delay is interruptible
"""

import asyncio
import logging

from sentinel_probe.failover import FailoverMonitor
from sentinel_probe.probe import ProbeExecutor
from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import ProbeOutcome, ProbeResult

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """
    Cooperative probe loop.

    Example:
        scheduler = ProbeScheduler(executor, stats, monitor, interval_ms=2000)
        await scheduler.run()  # until stop() or a fatal DiscoveryError
    """

    def __init__(
        self,
        executor: ProbeExecutor,
        stats: StatsAggregator,
        monitor: FailoverMonitor,
        interval_ms: int = 2000,
    ) -> None:
        self.executor = executor
        self.stats = stats
        self.monitor = monitor
        self.interval = interval_ms / 1000
        self._shutdown = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._shutdown.set()

    async def run(self, cycles: int | None = None) -> None:
        """
        Run probe cycles until stopped.

        Args:
            cycles: Stop after this many cycles (None runs forever)

        Raises:
            DiscoveryError: The failover monitor gave up reconnecting.
        """
        logger.info(f"Starting probe loop (interval: {self.interval}s)")
        completed = 0

        while not self._shutdown.is_set():
            self.monitor.raise_if_fatal()
            await self.run_once()
            completed += 1

            if cycles is not None and completed >= cycles:
                break

            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass  # Interval elapsed, next cycle

        logger.info(f"Probe loop stopped after {completed} cycle(s)")

    async def run_once(self) -> ProbeOutcome:
        """Run a single cycle, record it and log it."""
        self._running = True
        try:
            outcome = await self.executor.run_cycle()
        finally:
            self._running = False

        self.stats.record_outcome(outcome)
        self._log_outcome(outcome)
        return outcome

    def _log_outcome(self, outcome: ProbeOutcome) -> None:
        mean = self.stats.snapshot().mean_latency_ms
        if outcome.result == ProbeResult.SUCCESS:
            logger.info(
                f"[OK] Key={outcome.key} | Latency={outcome.latency_ms}ms | Avg={mean:.2f}ms"
            )
        elif outcome.result == ProbeResult.MISMATCH:
            logger.warning(
                f"[Mismatch] Key={outcome.key} Expected={outcome.expected_value}, "
                f"Got={outcome.observed_value} | Latency={outcome.latency_ms}ms | Avg={mean:.2f}ms"
            )
        else:
            logger.error(
                f"[Error] Key={outcome.key} {outcome.error_detail} | "
                f"Latency={outcome.latency_ms}ms | Avg={mean:.2f}ms"
            )
