"""
Store client protocol definition.

The StoreClientProtocol defines the interface the probe needs from a
Sentinel-aware key-value client. The Redis implementation lives in
sentinel_probe.client; tests use an in-memory fake.
"""

from typing import Callable, Protocol, runtime_checkable

from sentinel_probe.types import ClientEvent

EventHandler = Callable[[ClientEvent], None]


@runtime_checkable
class StoreClientProtocol(Protocol):
    """
    Protocol for Sentinel-aware store clients.

    A store client provides:
    - Discovery of the current master (connect / reconnect)
    - set/get/delete commands against that master
    - A feed of named lifecycle and topology events, delivered to a
      single subscriber

    Events (see ClientEventKind):
        connect, ready, error, reconnecting(delay_ms), close,
        switch_master(previous_master, new_master)
    """

    def subscribe(self, handler: EventHandler) -> None:
        """
        Register the subscriber for the event feed.

        A later call replaces the previous subscriber.
        """
        ...

    async def connect(self) -> None:
        """
        Discover the master and verify it accepts commands.

        Emits connect then ready on success.

        Raises:
            Exception: Any discovery or connection error (after emitting error).
        """
        ...

    async def reconnect(self, delay_ms: int) -> None:
        """
        Drop the current connection, wait delay_ms, then connect() again.

        Emits reconnecting(delay_ms) before waiting.
        """
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Write key=value with an expiry of ttl_seconds."""
        ...

    async def get(self, key: str) -> str | None:
        """Read key, returning None if absent."""
        ...

    async def delete(self, key: str) -> int:
        """Delete key, returning the number of keys removed."""
        ...

    async def close(self) -> None:
        """Release all connections and emit close."""
        ...
