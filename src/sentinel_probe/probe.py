"""
ProbeExecutor: one correctness-and-latency probe against the master.

A probe cycle:
1. Generate a random key under the probe prefix and a random value
2. SET key value EX ttl
3. GET key
4. Latency = time from before the SET until after the GET
5. Compare the value read with the value written
6. DEL key (best effort; the TTL cleans up if this fails)

The executor never raises for store errors: every cycle produces a
ProbeOutcome. It does not touch shared statistics.
"""

import logging
import secrets
import time
from typing import Callable

from sentinel_probe.protocols import StoreClientProtocol
from sentinel_probe.types import ProbeOutcome, ProbeResult

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float, now: float) -> int:
    return max(0, round((now - start) * 1000))


def _describe(error: BaseException) -> str:
    message = str(error)
    if not message:
        return type(error).__name__
    return f"{type(error).__name__}: {message}"


class ProbeExecutor:
    """
    Runs write/read/compare/delete cycles against a store client.

    Example:
        executor = ProbeExecutor(client, key_prefix="test:", ttl_seconds=10)
        outcome = await executor.run_cycle()
        if not outcome.ok:
            print(outcome.result, outcome.error_detail)
    """

    def __init__(
        self,
        client: StoreClientProtocol,
        key_prefix: str = "test:",
        key_bytes: int = 4,
        value_bytes: int = 8,
        ttl_seconds: int = 10,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """
        Initialize the executor.

        Args:
            client: Store client shared with the failover monitor
            key_prefix: Namespace for probe keys
            key_bytes: Random bytes in each key (hex encoded)
            value_bytes: Random bytes in each value (hex encoded)
            ttl_seconds: Expiry set on every probe key
            clock: Monotonic clock in seconds used for latency
        """
        self.client = client
        self.key_prefix = key_prefix
        self.key_bytes = key_bytes
        self.value_bytes = value_bytes
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def new_key(self) -> str:
        return f"{self.key_prefix}{secrets.token_hex(self.key_bytes)}"

    def new_value(self) -> str:
        return secrets.token_hex(self.value_bytes)

    async def run_cycle(self) -> ProbeOutcome:
        """
        Run one probe cycle.

        Returns:
            ProbeOutcome with result SUCCESS, MISMATCH or ERROR. Errors raised
            by the store are captured in error_detail.
        """
        key = self.new_key()
        value = self.new_value()
        start = self.clock()

        try:
            await self.client.set(key, value, self.ttl_seconds)
            observed = await self.client.get(key)
            latency_ms = _elapsed_ms(start, self.clock())
        except Exception as e:
            latency_ms = _elapsed_ms(start, self.clock())
            # The SET may have been applied even if its reply was lost.
            await self._cleanup(key)
            return ProbeOutcome(
                key=key,
                expected_value=value,
                observed_value=None,
                latency_ms=latency_ms,
                result=ProbeResult.ERROR,
                error_detail=_describe(e),
            )

        result = ProbeResult.SUCCESS if observed == value else ProbeResult.MISMATCH
        await self._cleanup(key)

        return ProbeOutcome(
            key=key,
            expected_value=value,
            observed_value=observed,
            latency_ms=latency_ms,
            result=result,
        )

    async def _cleanup(self, key: str) -> None:
        """Delete the probe key; failures are logged, the TTL expires it anyway."""
        try:
            await self.client.delete(key)
        except Exception as e:
            logger.warning(f"Cleanup of {key} failed (expires in {self.ttl_seconds}s): {_describe(e)}")
