"""Exception types raised by litmus."""


class LitmusError(Exception):
    """Base class for all litmus errors."""


class ConfigError(LitmusError, ValueError):
    """Raised when a configuration value fails validation."""


class PayloadError(LitmusError, TypeError):
    """Raised when a payload cannot be benchmarked at all, e.g. it is not callable.

    Exceptions raised *by* a payload while it runs are never wrapped; they are
    recorded on ``Benchmark.error`` and reported through the ``error`` event.
    """


class UnclockableError(LitmusError):
    """Raised when comparing against a benchmark whose payload was unclockable."""
