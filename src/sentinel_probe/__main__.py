"""Allow running as python -m sentinel_probe."""

from sentinel_probe.cli import main

main()
