"""Wall-clock helpers."""

from time import gmtime, strftime
from time import time as time_sec
from time import time_ns as time_nano


def time_s() -> float:
    """Get the current time in seconds since the epoch.

    Returns:
        The current time in seconds.

    """
    return time_sec()


def time_ms() -> float:
    """Get the current time in milliseconds since the epoch.

    Returns:
        The current time in milliseconds.

    """
    return time_sec() * 1_000.0


def time_ns() -> int:
    """Get the current time in nanoseconds since the epoch.

    Returns:
        The current time in nanoseconds.

    """
    return time_nano()


def time_iso8601(timestamp_s: float | None = None) -> str:
    """Format a timestamp as UTC ISO 8601 with millisecond precision.

    Args:
        timestamp_s: Seconds since the epoch. Defaults to now.

    Returns:
        A string like ``2024-01-31T12:00:00.123Z``.

    """
    if timestamp_s is None:
        timestamp_s = time_sec()
    millis = int((timestamp_s % 1.0) * 1_000.0)
    return f"{strftime('%Y-%m-%dT%H:%M:%S', gmtime(timestamp_s))}.{millis:03d}Z"
