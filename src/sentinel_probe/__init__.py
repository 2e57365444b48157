"""
Sentinel Probe

Long-running reliability probe for Redis deployments fronted by Sentinel.
It continuously writes, reads, compares and deletes synthetic keys on the
current master, measures latency, survives failovers and reconnects, and
reports running statistics.

- ProbeExecutor: One write/read/compare/delete cycle
- ProbeScheduler: Fixed-cadence, non-overlapping probe loop
- FailoverMonitor: Connection lifecycle, failover tracking, reconnect backoff
- StatsAggregator: Running counters and success-only mean latency
- Reporter: Periodic summaries
"""

__version__ = "0.1.0"

from sentinel_probe.app import ProbeApp, create_probe_app
from sentinel_probe.backoff import BackoffPolicy
from sentinel_probe.client import RedisSentinelClient
from sentinel_probe.config import ProbeSettings
from sentinel_probe.exceptions import DiscoveryError, NotConnectedError, ProbeError
from sentinel_probe.failover import FailoverMonitor
from sentinel_probe.probe import ProbeExecutor
from sentinel_probe.protocols import StoreClientProtocol
from sentinel_probe.reporter import Reporter
from sentinel_probe.scheduler import ProbeScheduler
from sentinel_probe.stats import StatsAggregator
from sentinel_probe.types import (
    ClientEvent,
    ClientEventKind,
    ConnectionState,
    FailoverEvent,
    ProbeOutcome,
    ProbeResult,
    StatsSnapshot,
)

__all__ = [
    "__version__",
    # Wiring
    "ProbeApp",
    "create_probe_app",
    "ProbeSettings",
    # Components
    "ProbeExecutor",
    "ProbeScheduler",
    "FailoverMonitor",
    "StatsAggregator",
    "Reporter",
    "BackoffPolicy",
    # Store client
    "StoreClientProtocol",
    "RedisSentinelClient",
    # Types
    "ClientEvent",
    "ClientEventKind",
    "ConnectionState",
    "FailoverEvent",
    "ProbeOutcome",
    "ProbeResult",
    "StatsSnapshot",
    # Errors
    "ProbeError",
    "DiscoveryError",
    "NotConnectedError",
]
