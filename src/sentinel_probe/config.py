"""Environment-based configuration for the reliability probe."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ProbeSettings(BaseSettings):
    """Probe configuration.

    All settings can be overridden via environment variables with
    SENTINEL_PROBE_ prefix. For example:
        SENTINEL_PROBE_SENTINELS=sentinel-1:26379,sentinel-2:26379
        SENTINEL_PROBE_MASTER_NAME=mymaster
        SENTINEL_PROBE_INTERVAL_MS=5000

    Settings are immutable once loaded.
    """

    # Discovery
    sentinels: str = "localhost:26379"  # comma-separated host:port list, in order
    master_name: str = "mymaster"
    role: str = "master"
    password: str | None = None
    sentinel_password: str | None = None

    # Probe cycle
    interval_ms: int = Field(default=2000, ge=0)
    report_interval_ms: int = Field(default=30000, gt=0)
    key_prefix: str = "test:"
    key_bytes: int = Field(default=4, ge=1)
    value_bytes: int = Field(default=8, ge=1)
    ttl_seconds: int = Field(default=10, ge=1)

    # Reconnect backoff: delay = min(attempt * base, max)
    reconnect_base_delay_ms: int = Field(default=1000, ge=0)
    reconnect_max_delay_ms: int = Field(default=10000, ge=0)
    startup_attempts: int = Field(default=10, ge=1)
    max_reconnect_attempts: int | None = Field(default=None, ge=1)

    # Timeouts (seconds)
    socket_timeout: float = Field(default=5.0, gt=0)
    socket_connect_timeout: float = Field(default=2.0, gt=0)
    operation_timeout: float | None = Field(default=None, gt=0)

    log_level: str = "INFO"

    model_config = {"env_prefix": "SENTINEL_PROBE_", "frozen": True}

    @field_validator("sentinels")
    @classmethod
    def _check_sentinels(cls, value: str) -> str:
        entries = [entry.strip() for entry in value.split(",") if entry.strip()]
        if not entries:
            raise ValueError("at least one sentinel address is required")
        for entry in entries:
            _split_address(entry)
        return ",".join(entries)

    @field_validator("role")
    @classmethod
    def _check_role(cls, value: str) -> str:
        if value != "master":
            raise ValueError("only the 'master' role can be probed")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    def sentinel_addresses(self) -> list[tuple[str, int]]:
        """Return the configured sentinels as (host, port) pairs, in order."""
        return [_split_address(entry) for entry in self.sentinels.split(",")]


def _split_address(entry: str) -> tuple[str, int]:
    host, sep, port = entry.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid sentinel address '{entry}', expected host:port")
    return host, int(port)
