"""Redis Sentinel store client.

Connects to the current master through Sentinel discovery, runs the probe
commands against it, and publishes lifecycle and topology events to a
single subscriber (the FailoverMonitor).
"""

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from redis.asyncio.sentinel import Sentinel
from redis.exceptions import RedisError

from sentinel_probe.config import ProbeSettings
from sentinel_probe.exceptions import NotConnectedError
from sentinel_probe.protocols import EventHandler
from sentinel_probe.types import ClientEvent, ClientEventKind, format_address

logger = logging.getLogger(__name__)

SWITCH_MASTER_CHANNEL = "+switch-master"

T = TypeVar("T")


def parse_switch_master(payload: str) -> tuple[str, str, str] | None:
    """
    Parse a Sentinel +switch-master announcement.

    Args:
        payload: "<master-name> <old-ip> <old-port> <new-ip> <new-port>"

    Returns:
        (master_name, previous_address, new_address), or None if the
        payload is malformed.
    """
    parts = payload.split()
    if len(parts) != 5:
        return None
    name, old_host, old_port, new_host, new_port = parts
    return name, format_address(old_host, old_port), format_address(new_host, new_port)


class RedisSentinelClient:
    """
    Sentinel-aware Redis client implementing StoreClientProtocol.

    The master connection comes from Sentinel.master_for(), whose pool
    re-resolves the master whenever it opens a new connection. A background
    task listens for +switch-master announcements on the first reachable
    Sentinel and turns them into switch_master events.

    Example:
        client = RedisSentinelClient.from_settings(ProbeSettings())
        client.subscribe(monitor.handle_event)
        await client.connect()
        await client.set("test:abcd", "value", ttl_seconds=10)
    """

    def __init__(
        self,
        sentinels: list[tuple[str, int]],
        master_name: str,
        *,
        password: str | None = None,
        sentinel_password: str | None = None,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 2.0,
        operation_timeout: float | None = None,
        watch_retry_delay_ms: int = 1000,
        watch_topology: bool = True,
        sentinel: Sentinel | None = None,
    ) -> None:
        self.sentinels = sentinels
        self.master_name = master_name
        self._password = password
        self._sentinel_password = sentinel_password
        self._socket_connect_timeout = socket_connect_timeout
        self._operation_timeout = operation_timeout
        self._watch_retry_delay = watch_retry_delay_ms / 1000
        self._watch_topology = watch_topology

        if sentinel is None:
            sentinel = Sentinel(
                sentinels,
                sentinel_kwargs={
                    "password": sentinel_password,
                    "socket_timeout": socket_timeout,
                    "socket_connect_timeout": socket_connect_timeout,
                    "decode_responses": True,
                },
                password=password,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
                decode_responses=True,
            )
        self._sentinel = sentinel

        self._handler: EventHandler | None = None
        self._master: redis.Redis | None = None
        self._master_address: str | None = None
        self._watcher: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: ProbeSettings) -> "RedisSentinelClient":
        """Build a client from loaded settings."""
        return cls(
            settings.sentinel_addresses(),
            settings.master_name,
            password=settings.password,
            sentinel_password=settings.sentinel_password,
            socket_timeout=settings.socket_timeout,
            socket_connect_timeout=settings.socket_connect_timeout,
            operation_timeout=settings.operation_timeout,
            watch_retry_delay_ms=settings.reconnect_base_delay_ms,
        )

    @property
    def master_address(self) -> str | None:
        """Address of the master discovered most recently."""
        return self._master_address

    def subscribe(self, handler: EventHandler) -> None:
        self._handler = handler

    def _emit(self, kind: ClientEventKind, **fields: Any) -> None:
        if self._handler is not None:
            self._handler(ClientEvent(kind=kind, **fields))

    async def connect(self) -> None:
        """
        Discover the master through Sentinel and verify it with PING.

        Emits connect once a Sentinel answered, then switch_master if the
        master moved since the last connection, then ready.

        Raises:
            redis.RedisError: Discovery failed (MasterNotFoundError) or the
                master did not answer.
            OSError: Network failure below the Redis protocol layer.
        """
        try:
            host, port = await self._sentinel.discover_master(self.master_name)
            self._emit(ClientEventKind.CONNECT)
            if self._master is None:
                self._master = self._sentinel.master_for(self.master_name)
            await self._master.ping()
        except (RedisError, OSError) as e:
            self._emit(ClientEventKind.ERROR, error=e)
            raise

        address = format_address(host, port)
        previous = self._master_address
        self._master_address = address
        if previous is not None and previous != address:
            self._emit(
                ClientEventKind.SWITCH_MASTER,
                previous_master=previous,
                new_master=address,
            )

        if self._watch_topology and (self._watcher is None or self._watcher.done()):
            self._watcher = asyncio.create_task(self._watch_switch_master())

        self._emit(ClientEventKind.READY)

    async def reconnect(self, delay_ms: int) -> None:
        self._emit(ClientEventKind.RECONNECTING, delay_ms=delay_ms)
        await self._drop_master()
        await asyncio.sleep(delay_ms / 1000)
        await self.connect()

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._command("SET", lambda master: master.set(key, value, ex=ttl_seconds))

    async def get(self, key: str) -> str | None:
        return await self._command("GET", lambda master: master.get(key))

    async def delete(self, key: str) -> int:
        return await self._command("DEL", lambda master: master.delete(key))

    async def close(self) -> None:
        if self._watcher is not None:
            self._watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watcher
            self._watcher = None

        await self._drop_master()
        for conn in self._sentinel.sentinels:
            try:
                await conn.aclose()
            except (RedisError, OSError) as e:
                logger.debug(f"Ignoring error while closing sentinel connection: {e}")

        self._emit(ClientEventKind.CLOSE)

    async def _command(
        self, name: str, call: Callable[[redis.Redis], Awaitable[T]]
    ) -> T:
        """
        Run one command against the master.

        Errors are reported on the event feed before being re-raised so the
        monitor can decide whether a reconnect is needed.
        """
        if self._master is None:
            error = NotConnectedError(name)
            self._emit(ClientEventKind.ERROR, error=error)
            raise error

        try:
            if self._operation_timeout is None:
                return await call(self._master)
            return await asyncio.wait_for(call(self._master), self._operation_timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            self._emit(ClientEventKind.ERROR, error=e)
            raise

    async def _drop_master(self) -> None:
        if self._master is None:
            return
        master, self._master = self._master, None
        try:
            await master.connection_pool.disconnect()
            await master.aclose()
        except (RedisError, OSError) as e:
            logger.debug(f"Ignoring error while closing master connection: {e}")

    async def _watch_switch_master(self) -> None:
        """
        Listen for +switch-master on the configured Sentinels, in order.

        When the subscribed Sentinel goes away, waits the retry delay and
        moves on to the next one. Runs until cancelled by close().
        """
        index = 0
        while True:
            host, port = self.sentinels[index % len(self.sentinels)]
            index += 1

            # No read timeout: the subscription is idle until a failover.
            conn = redis.Redis(
                host=host,
                port=port,
                password=self._sentinel_password,
                socket_connect_timeout=self._socket_connect_timeout,
                socket_keepalive=True,
                decode_responses=True,
            )
            try:
                async with conn.pubsub() as pubsub:
                    await pubsub.subscribe(SWITCH_MASTER_CHANNEL)
                    logger.debug(f"Watching {SWITCH_MASTER_CHANNEL} on {host}:{port}")
                    async for message in pubsub.listen():
                        if message.get("type") == "message":
                            self._on_switch_master(message["data"])
            except (RedisError, OSError) as e:
                logger.warning(f"Lost topology watch on sentinel {host}:{port}: {e}")
            except Exception:
                logger.exception(f"Topology watch on sentinel {host}:{port} failed")
            finally:
                await conn.aclose()

            await asyncio.sleep(self._watch_retry_delay)

    def _on_switch_master(self, payload: str) -> None:
        parsed = parse_switch_master(payload)
        if parsed is None:
            logger.warning(f"Ignoring malformed {SWITCH_MASTER_CHANNEL} message: {payload!r}")
            return

        name, previous, new = parsed
        if name != self.master_name:
            return

        self._master_address = new
        self._emit(
            ClientEventKind.SWITCH_MASTER,
            previous_master=previous,
            new_master=new,
        )
