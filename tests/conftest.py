"""Shared fixtures: an in-memory store client and zero-delay components."""

import asyncio
from typing import Any, Callable

import pytest
from redis.exceptions import ConnectionError

from sentinel_probe.backoff import BackoffPolicy
from sentinel_probe.failover import FailoverMonitor
from sentinel_probe.probe import ProbeExecutor
from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import ClientEvent, ClientEventKind


class FakeStoreClient:
    """
    In-memory store client implementing StoreClientProtocol.

    Knobs:
        connect_failures: Number of upcoming connect() calls that fail
        errors: One-shot exceptions keyed by operation ("set", "get", "delete")
        before: Callables run before an operation (may emit events or raise)
        read_override: Value returned by every get() instead of the stored one
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.handler: Callable[[ClientEvent], None] | None = None
        self.calls: list[tuple[str, str]] = []
        self.events: list[ClientEvent] = []
        self.connect_calls = 0
        self.connect_failures = 0
        self.reconnect_delays: list[int] = []
        self.errors: dict[str, BaseException] = {}
        self.before: dict[str, Callable[[], None]] = {}
        self.read_override: str | None = None
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0

    def subscribe(self, handler: Callable[[ClientEvent], None]) -> None:
        self.handler = handler

    def emit(self, kind: ClientEventKind, **fields: Any) -> None:
        event = ClientEvent(kind=kind, **fields)
        self.events.append(event)
        if self.handler is not None:
            self.handler(event)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_failures > 0:
            self.connect_failures -= 1
            error = ConnectionError("No master found for 'mymaster'")
            self.emit(ClientEventKind.ERROR, error=error)
            raise error
        self.emit(ClientEventKind.CONNECT)
        self.emit(ClientEventKind.READY)

    async def reconnect(self, delay_ms: int) -> None:
        self.reconnect_delays.append(delay_ms)
        self.emit(ClientEventKind.RECONNECTING, delay_ms=delay_ms)
        await asyncio.sleep(0)
        await self.connect()

    async def _enter(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            hook = self.before.get(op)
            if hook is not None:
                hook()
            error = self.errors.pop(op, None)
            if error is not None:
                self.emit(ClientEventKind.ERROR, error=error)
                raise error
        finally:
            self.in_flight -= 1

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._enter("set", key)
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def get(self, key: str) -> str | None:
        await self._enter("get", key)
        if self.read_override is not None:
            return self.read_override
        return self.data.get(key)

    async def delete(self, key: str) -> int:
        await self._enter("delete", key)
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def close(self) -> None:
        self.closed = True
        self.emit(ClientEventKind.CLOSE)


@pytest.fixture
def fake_client() -> FakeStoreClient:
    return FakeStoreClient()


@pytest.fixture
def stats() -> StatsAggregator:
    return StatsAggregator()


@pytest.fixture
def zero_backoff() -> BackoffPolicy:
    """Backoff that never sleeps, allowing three attempts."""
    return BackoffPolicy(base_delay_ms=0, max_delay_ms=0, max_attempts=3)


@pytest.fixture
def monitor(fake_client, stats, zero_backoff) -> FailoverMonitor:
    return FailoverMonitor(
        fake_client,
        stats,
        master_name="mymaster",
        startup_policy=zero_backoff,
        reconnect_policy=zero_backoff,
    )


@pytest.fixture
def executor(fake_client) -> ProbeExecutor:
    return ProbeExecutor(fake_client, key_prefix="test:", ttl_seconds=10)
