"""Tick counters used to time payload cycles."""

from __future__ import annotations

import math
import time
from collections.abc import Callable

# Smallest cycle duration used when none is configured (seconds).
MIN_TIME_FLOOR_S = 0.05

RESOLUTION_PROBES = 32


class Clock:
    """An integer tick counter with a probed resolution.

    Args:
        name: Human-readable name, e.g. ``"perf_counter"``.
        ticks: Zero-argument function returning a monotonically increasing int.
        ticks_per_second: Number of ticks in one second.
    """

    def __init__(
        self,
        name: str,
        ticks: Callable[[], int],
        ticks_per_second: int,
    ) -> None:
        if ticks_per_second <= 0:
            raise ValueError(
                f"Invalid ticks_per_second; expected >0 but got {ticks_per_second}"
            )
        self.name = name
        self.ticks = ticks
        self.ticks_per_second = ticks_per_second
        self._resolution_s: float | None = None

    def __repr__(self) -> str:
        return f"Clock(name={self.name!r}, ticks_per_second={self.ticks_per_second})"

    @classmethod
    def perf(cls) -> Clock:
        """Return a clock backed by ``time.perf_counter_ns``."""
        return cls("perf_counter", time.perf_counter_ns, 1_000_000_000)

    @classmethod
    def monotonic(cls) -> Clock:
        """Return a clock backed by ``time.monotonic_ns``."""
        return cls("monotonic", time.monotonic_ns, 1_000_000_000)

    @classmethod
    def wall(cls) -> Clock:
        """Return a clock backed by ``time.time_ns``."""
        return cls("time", time.time_ns, 1_000_000_000)

    @classmethod
    def best(cls) -> Clock:
        """Return the available clock with the finest measured resolution."""
        return min(
            (cls.perf(), cls.monotonic(), cls.wall()),
            key=lambda clock: clock.resolution_s,
        )

    def now(self) -> int:
        """Read the tick counter."""
        return self.ticks()

    def elapsed(self, start: int, stop: int) -> float:
        """Convert a pair of tick readings into seconds."""
        return (stop - start) / self.ticks_per_second

    @property
    def resolution_s(self) -> float:
        """Smallest observed non-zero tick delta, in seconds (probed once)."""
        if self._resolution_s is None:
            self._resolution_s = self._probe_resolution()
        return self._resolution_s

    @property
    def min_time_s(self) -> float:
        """Cycle duration giving a percent uncertainty of at most 1%.

        Values above 0.7s are rounded up to the next tenth of a second.
        """
        min_time = self.resolution_s / 2.0 / 0.01
        if min_time > 0.7:
            return round(min_time + 1e-3, 1)
        return min_time

    def _probe_resolution(self, probes: int = RESOLUTION_PROBES) -> float:
        ticks = self.ticks
        smallest = math.inf
        for _ in range(probes):
            start = ticks()
            stop = ticks()
            while stop == start:
                stop = ticks()
            smallest = min(smallest, stop - start)
        return smallest / self.ticks_per_second
