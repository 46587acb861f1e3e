"""Statistical ordering of measured benchmarks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from litmus.errors import UnclockableError

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark


def compare(a: Benchmark, b: Benchmark) -> int:
    """Order two benchmarks by their 95% confidence intervals of ``hz``.

    Args:
        a: The benchmark being ranked.
        b: The benchmark to rank against.

    Returns:
        1 if ``a`` is faster, -1 if slower, 0 if the intervals overlap.

    Raises:
        UnclockableError: If either payload was unclockable.

    """
    for bench in (a, b):
        if bench.unclockable:
            raise UnclockableError(f"Cannot compare unclockable benchmark {bench.name!r}")

    a_lower, a_upper = a.hz - a.moe, a.hz + a.moe
    b_lower, b_upper = b.hz - b.moe, b.hz + b.moe
    if a_lower <= b_upper and a_upper >= b_lower:
        return 0
    return 1 if a_lower > b_lower else -1


def _ranked(benches: Iterable[Benchmark]) -> list[Benchmark]:
    return [
        bench
        for bench in benches
        if not bench.unclockable and bench.error is None and not bench.aborted and bench.hz
    ]


def fastest(benches: Iterable[Benchmark]) -> list[Benchmark]:
    """Return the measured benchmarks statistically tied for the highest ``hz``.

    Errored, aborted and unclockable benchmarks are ignored.
    """
    ranked = _ranked(benches)
    if not ranked:
        return []
    top = max(ranked, key=lambda bench: bench.hz)
    return [bench for bench in ranked if compare(bench, top) == 0]


def slowest(benches: Iterable[Benchmark]) -> list[Benchmark]:
    """Return the measured benchmarks statistically tied for the lowest ``hz``."""
    ranked = _ranked(benches)
    if not ranked:
        return []
    bottom = min(ranked, key=lambda bench: bench.hz)
    return [bench for bench in ranked if compare(bench, bottom) == 0]
