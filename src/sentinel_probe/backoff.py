"""
Backoff policy for Sentinel discovery and reconnection.

Delays grow linearly with the attempt number and are capped:

    delay = min(attempt * base_delay_ms, max_delay_ms)

so with the defaults the waits are 1s, 2s, 3s ... up to 10s. The attempt
number starts at 1 and is reset by the caller after a successful reconnect.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Bounded backoff configuration.

    Attributes:
        base_delay_ms: Delay unit multiplied by the attempt number (default 1000)
        max_delay_ms: Upper bound on any single delay (default 10000)
        max_attempts: Attempts allowed before giving up (None for unlimited)

    Example:
        policy = BackoffPolicy(max_attempts=5)
        policy.delay_ms(3)  # 3000
        policy.delay_ms(20)  # 10000
    """

    base_delay_ms: int = 1000
    max_delay_ms: int = 10000
    max_attempts: int | None = None

    def delay_ms(self, attempt: int) -> int:
        """
        Delay before the given attempt.

        Args:
            attempt: 1 for the first retry, 2 for the second, etc.

        Returns:
            Milliseconds to wait, never more than max_delay_ms
        """
        attempt = max(attempt, 1)
        return min(attempt * self.base_delay_ms, self.max_delay_ms)

    def should_retry(self, attempts_made: int) -> bool:
        """True if another attempt is allowed after attempts_made tries."""
        if self.max_attempts is None:
            return True
        return attempts_made < self.max_attempts
