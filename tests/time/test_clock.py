"""Tests for tick counters."""

import itertools

import pytest

from litmus.time import Clock


def stepping_clock(step: int, ticks_per_second: int = 1_000_000_000) -> Clock:
    return Clock("fake", itertools.count(step=step).__next__, ticks_per_second)


class TestClock:
    """Test resolution probing and conversions."""

    def test_rejects_invalid_rate(self) -> None:
        with pytest.raises(ValueError, match="ticks_per_second"):
            Clock("bad", lambda: 0, 0)

    def test_elapsed(self) -> None:
        clock = stepping_clock(1)
        assert clock.elapsed(1_000, 3_500_000_000) == pytest.approx(3.499999)
        assert clock.elapsed(5, 5) == 0.0

    def test_now_reads_ticks(self) -> None:
        clock = stepping_clock(10)
        assert clock.now() == 0
        assert clock.now() == 10

    def test_resolution(self) -> None:
        clock = stepping_clock(1_000)
        assert clock.resolution_s == pytest.approx(1e-6)

    def test_resolution_ignores_repeated_reads(self) -> None:
        readings = iter([0, 0, 0, 2_000] * 64)
        clock = Clock("coarse", readings.__next__, 1_000_000_000)

        assert clock.resolution_s == pytest.approx(2e-6)

    def test_min_time_fine_clock(self) -> None:
        clock = stepping_clock(1_000)
        assert clock.min_time_s == pytest.approx(5e-5)

    def test_min_time_coarse_clock_rounded(self) -> None:
        clock = stepping_clock(15_000_000)
        assert clock.min_time_s == pytest.approx(0.8)

    @pytest.mark.parametrize("factory", [Clock.perf, Clock.monotonic, Clock.wall])
    def test_builtin_clocks(self, factory) -> None:
        clock = factory()
        assert clock.ticks_per_second == 1_000_000_000
        assert clock.resolution_s > 0.0
        start = clock.now()
        assert clock.elapsed(start, clock.now()) >= 0.0

    def test_best(self) -> None:
        best = Clock.best()
        assert best.name in {"perf_counter", "monotonic", "time"}
