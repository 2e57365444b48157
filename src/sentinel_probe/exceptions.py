"""
Exception classes for the reliability probe.

- ProbeError: Base class for probe-specific errors
- DiscoveryError: Sentinel discovery failed for good (the only fatal error)
- NotConnectedError: A store command was issued before discovery completed

Context data is stored in attributes for error handling.
"""


class ProbeError(Exception):
    """Base class for probe errors."""


class DiscoveryError(ProbeError):
    """
    Raised when the master cannot be discovered after exhausting retries.

    This is the one failure class that is not absorbed: it propagates out
    of the scheduler and terminates the process with a non-zero status.

    Attributes:
        master_name: The Sentinel master group that could not be resolved
        attempts: How many discovery attempts were made
    """

    def __init__(self, master_name: str, attempts: int, reason: str = "") -> None:
        self.master_name = master_name
        self.attempts = attempts
        self.reason = reason
        message = f"Could not discover master '{master_name}' after {attempts} attempt(s)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotConnectedError(ProbeError):
    """Raised when a command is issued before the client is connected."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot run {operation}: client is not connected")
