"""
FailoverMonitor: keeps the probe attached to the current master.

The monitor is the single subscriber of the store client's event feed:
- Tracks ConnectionState from connect/ready/reconnecting/close events
- Records every switch_master announcement as a FailoverEvent in the stats
- Reconnects with bounded backoff after transient errors
- Turns exhausted discovery retries into a fatal DiscoveryError

Interrupted probe cycles are not replayed; they show up as error outcomes
and the scheduler carries on against the new master on its next tick.
"""

import asyncio
import contextlib
import logging

from redis.exceptions import ConnectionError, ReadOnlyError, TimeoutError

from sentinel_probe.backoff import BackoffPolicy
from sentinel_probe.exceptions import DiscoveryError, NotConnectedError
from sentinel_probe.protocols import StoreClientProtocol
from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import (
    ClientEvent,
    ClientEventKind,
    ConnectionState,
    FailoverEvent,
)

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
    ReadOnlyError,
    NotConnectedError,
    asyncio.TimeoutError,
    OSError,
)

_STATE_TRANSITIONS = {
    ClientEventKind.CONNECT: ConnectionState.CONNECTED,
    ClientEventKind.READY: ConnectionState.READY,
    ClientEventKind.RECONNECTING: ConnectionState.CONNECTING,
    ClientEventKind.CLOSE: ConnectionState.DISCONNECTED,
}


def is_transient(error: BaseException | None) -> bool:
    """True if the error is a connection-level failure worth reconnecting for."""
    return isinstance(error, TRANSIENT_ERRORS)


class FailoverMonitor:
    """
    Event-driven connection supervisor for the store client.

    Example:
        monitor = FailoverMonitor(client, stats, master_name="mymaster")
        await monitor.start()  # raises DiscoveryError if no Sentinel answers
        ...
        monitor.raise_if_fatal()
    """

    def __init__(
        self,
        client: StoreClientProtocol,
        stats: StatsAggregator,
        master_name: str = "mymaster",
        startup_policy: BackoffPolicy | None = None,
        reconnect_policy: BackoffPolicy | None = None,
    ) -> None:
        """
        Initialize the monitor and subscribe it to the client's events.

        Args:
            client: Store client whose lifecycle this monitor manages
            stats: Aggregator that receives failover events
            master_name: Sentinel master group, used in error messages
            startup_policy: Backoff for initial discovery (default 10 attempts)
            reconnect_policy: Backoff for reconnects (default unlimited)
        """
        self.client = client
        self.stats = stats
        self.master_name = master_name
        self.startup_policy = startup_policy or BackoffPolicy(max_attempts=10)
        self.reconnect_policy = reconnect_policy or BackoffPolicy()

        self._state = ConnectionState.DISCONNECTED
        self._attempt = 1
        self._reconnect_task: asyncio.Task | None = None
        self._fatal: DiscoveryError | None = None
        self.last_failover: FailoverEvent | None = None

        client.subscribe(self.handle_event)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnecting(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    async def start(self) -> None:
        """
        Discover the master and wait until the client is ready.

        Retries with the startup backoff policy.

        Raises:
            DiscoveryError: No master could be discovered within the
                startup policy's attempts.
        """
        logger.info(f"Discovering master '{self.master_name}'")
        attempts = 1
        try:
            await self.client.connect()
            return
        except Exception as e:
            last_error = e

        while self.startup_policy.should_retry(attempts):
            try:
                await self.client.reconnect(self.startup_policy.delay_ms(attempts))
                return
            except Exception as e:
                last_error = e
            finally:
                attempts += 1

        raise DiscoveryError(self.master_name, attempts, str(last_error)) from last_error

    async def stop(self) -> None:
        """Cancel any reconnect in progress."""
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
            self._reconnect_task = None

    def raise_if_fatal(self) -> None:
        """Re-raise the fatal error recorded by a failed reconnect, if any."""
        if self._fatal is not None:
            raise self._fatal

    def handle_event(self, event: ClientEvent) -> None:
        """Apply one client event: update state, stats and reconnect logic."""
        self._state = _STATE_TRANSITIONS.get(event.kind, self._state)

        if event.kind == ClientEventKind.CONNECT:
            logger.info("Connected to Sentinel, master discovered")
        elif event.kind == ClientEventKind.READY:
            logger.info("Store client is ready (connected to master)")
        elif event.kind == ClientEventKind.RECONNECTING:
            logger.warning(f"Reconnecting in {event.delay_ms}ms")
        elif event.kind == ClientEventKind.CLOSE:
            logger.warning("Store connection closed")
        elif event.kind == ClientEventKind.SWITCH_MASTER:
            self._on_switch_master(event)
        elif event.kind == ClientEventKind.ERROR:
            self._on_error(event)

    def _on_switch_master(self, event: ClientEvent) -> None:
        failover = FailoverEvent(
            timestamp=event.timestamp,
            previous_master=event.previous_master or "unknown",
            new_master=event.new_master or "unknown",
        )
        self.last_failover = failover
        self.stats.record_failover(failover)
        logger.warning(
            f"Master switched: {failover.previous_master} -> {failover.new_master}"
        )

    def _on_error(self, event: ClientEvent) -> None:
        logger.error(f"Store error: {event.error}")

        # Startup retries and running reconnects handle their own errors.
        if self._state != ConnectionState.READY or self.reconnecting:
            return
        if not is_transient(event.error):
            return

        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        """Reconnect until it works or the reconnect policy is exhausted."""
        attempts_made = 0
        while True:
            delay = self.reconnect_policy.delay_ms(self._attempt)
            try:
                await self.client.reconnect(delay)
            except Exception as e:
                attempts_made += 1
                self._attempt += 1
                if not self.reconnect_policy.should_retry(attempts_made):
                    self._fatal = DiscoveryError(self.master_name, attempts_made, str(e))
                    logger.critical(str(self._fatal))
                    return
                continue

            self._attempt = 1
            logger.info(f"Reconnected to master '{self.master_name}'")
            return
