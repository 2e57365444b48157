"""
Core types for the reliability probe.

This module defines the data structures shared by the probe components:
- ConnectionState: Enum for the store client's connection lifecycle
- ProbeResult: Enum for the outcome of one probe cycle
- ClientEventKind / ClientEvent: The named event feed emitted by the store client
- ProbeOutcome: Result of a single write/read/compare/delete cycle
- FailoverEvent: A master switch announced by Sentinel
- StatsSnapshot: Immutable copy of the running statistics

Str enums keep values JSON friendly; snapshots expose to_dict() for output.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ConnectionState(str, Enum):
    """Connection lifecycle states, driven only by client events."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    READY = "ready"


class ProbeResult(str, Enum):
    """Valid probe cycle results."""

    SUCCESS = "success"
    MISMATCH = "mismatch"
    ERROR = "error"


class ClientEventKind(str, Enum):
    """Lifecycle and topology events emitted by a store client."""

    CONNECT = "connect"
    READY = "ready"
    ERROR = "error"
    RECONNECTING = "reconnecting"
    CLOSE = "close"
    SWITCH_MASTER = "switch_master"


@dataclass(frozen=True)
class ClientEvent:
    """
    A single event from the store client's feed.

    Only the fields relevant to the event kind are set:
    - error: the exception for ERROR events
    - delay_ms: the scheduled delay for RECONNECTING events
    - previous_master / new_master: addresses for SWITCH_MASTER events
    """

    kind: ClientEventKind
    timestamp: datetime = field(default_factory=datetime.now)
    error: BaseException | None = None
    delay_ms: int | None = None
    previous_master: str | None = None
    new_master: str | None = None


@dataclass(frozen=True)
class ProbeOutcome:
    """
    Result of one probe cycle.

    Attributes:
        key: The probe key that was written
        expected_value: The value written to the key
        observed_value: The value read back (None if absent or not read)
        latency_ms: Milliseconds from before the write until after the read
        result: SUCCESS, MISMATCH or ERROR
        error_detail: Exception description for ERROR outcomes
    """

    key: str
    expected_value: str
    observed_value: str | None
    latency_ms: int
    result: ProbeResult
    error_detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.result == ProbeResult.SUCCESS


@dataclass(frozen=True)
class FailoverEvent:
    """A master switch: addresses are rendered as host:port."""

    timestamp: datetime
    previous_master: str
    new_master: str


@dataclass(frozen=True)
class StatsSnapshot:
    """
    Immutable copy of the running probe statistics.

    Attributes:
        total_attempts: Probe cycles recorded so far
        success_count: Cycles that read back the written value
        fail_count: Mismatch plus error cycles
        mean_latency_ms: Mean latency of successful cycles only
        last_failover_at: Timestamp of the most recent master switch
        mismatch_count: Cycles that read back a different value
        error_count: Cycles that failed with an exception
        failover_count: Master switches observed
        started_at: When the aggregator was created
    """

    total_attempts: int = 0
    success_count: int = 0
    fail_count: int = 0
    mean_latency_ms: float = 0.0
    last_failover_at: datetime | None = None
    mismatch_count: int = 0
    error_count: int = 0
    failover_count: int = 0
    started_at: datetime | None = None

    @property
    def success_rate(self) -> float:
        """Fraction of attempts that succeeded (1.0 before any attempt)."""
        if self.total_attempts == 0:
            return 1.0
        return self.success_count / self.total_attempts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        d = asdict(self)
        d["success_rate"] = self.success_rate
        return d


def format_address(host: str, port: int | str) -> str:
    """Render a host/port pair as host:port."""
    return f"{host}:{port}"
