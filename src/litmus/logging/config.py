"""Log levels and logger settings."""

from enum import IntEnum
from typing import Self

from msgspec import Struct


class LogLevel(IntEnum):
    """Severity of an engine message, lowest first."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4


class LoggerConfig(Struct):
    """Settings of a litmus ``Logger``.

    The defaults keep benchmark runs quiet: only warnings and errors are
    kept, and nothing is echoed to stdout.

    Args:
        base_level: Messages below this level are dropped.
        do_stdout: Echo every flushed message to stdout.
        str_format: ``%``-style line format. ``%(message)s`` is required;
            ``%(asctime)s``, ``%(levelname)s`` and ``%(name)s`` are optional.
        flush_interval_s: Longest a buffered message waits for the next log
            call to flush it (seconds).
        buffer_size: Buffered line count that forces a flush.
    """

    base_level: LogLevel = LogLevel.WARNING
    do_stdout: bool = False
    str_format: str = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
    flush_interval_s: float = 1.0
    buffer_size: int = 1000

    def __post_init__(self):
        """Reject settings the logger cannot honour."""
        if self.flush_interval_s <= 0.0:
            raise ValueError(
                f"Invalid flush_interval_s; expected >0 but got {self.flush_interval_s}"
            )
        if "%(message)s" not in self.str_format:
            raise ValueError(
                f"Invalid str_format; expected a '%(message)s' placeholder but got {self.str_format!r}"
            )
        if self.buffer_size <= 0:
            raise ValueError(
                f"Invalid buffer_size; expected >0 but got {self.buffer_size}"
            )

    @classmethod
    def default(cls) -> Self:
        """Warnings and errors only, no stdout echo."""
        return cls()
