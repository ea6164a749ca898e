"""Per-user notification store."""

__version__ = "0.1.0"
