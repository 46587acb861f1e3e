"""Report formatting for benchmark results.

Provides number formatting and table output shared by the CLI and suites.
"""

from __future__ import annotations

import math
import platform
from collections.abc import Sequence
from typing import TYPE_CHECKING

import msgspec

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark, BenchmarkResult


def format_number(number: float) -> str:
    """Format the magnitude of ``number`` rounded to an integer, with thousands separators.

    Args:
        number: Value to format; negative values are shown as their magnitude.

    Returns:
        e.g. ``"1,234,567"``; ``"inf"`` for infinite and ``"0"`` for nan.

    """
    if math.isnan(number):
        return "0"
    if math.isinf(number):
        return "inf"
    return f"{round(abs(number)):,}"


def platform_description() -> str:
    """Describe the interpreter and OS, e.g. ``"CPython 3.12.1 on Linux (x86_64)"``."""
    return (
        f"{platform.python_implementation()} {platform.python_version()} "
        f"on {platform.system() or 'unknown'} ({platform.machine() or 'unknown'})"
    )


def encode_results(results: Sequence[BenchmarkResult]) -> bytes:
    """Serialize results to JSON."""
    return msgspec.json.encode(list(results))


def decode_results(data: bytes) -> list[BenchmarkResult]:
    """Parse results serialized by ``encode_results``."""
    from litmus.benchmark import BenchmarkResult

    return msgspec.json.decode(data, type=list[BenchmarkResult])


class SuiteReporter:
    """Formats and prints a table of benchmark results.

    Args:
        title: Report title (e.g., "String joins").
    """

    def __init__(self, title: str) -> None:
        self.title = title

    def print_header(self) -> None:
        """Print title and platform."""
        print("=" * 100)
        print(self.title)
        print("=" * 100)
        print(f"Platform: {platform_description()}")
        print()

    def format_row(self, bench: Benchmark) -> str:
        """Format one benchmark as a table row."""
        if bench.error is not None:
            status = f"error: {bench.error!r}"
        elif bench.aborted:
            status = "aborted"
        elif bench.unclockable:
            status = "unclockable"
        else:
            status = ""
        rme = f"\xb1{bench.rme:.2f}%"
        return (
            f"{bench.name:<40} {format_number(bench.hz):>16} "
            f"{rme:>10} {bench.cycles:>8} {status}"
        ).rstrip()

    def print_table(self, benches: Sequence[Benchmark], fastest: Sequence[Benchmark] = ()) -> None:
        """Print one row per benchmark, marking the fastest ones.

        Args:
            benches: Benchmarks to list, in order.
            fastest: Benchmarks to mark with ``*``.
        """
        print(f"  {'Benchmark':<40} {'ops/sec':>16} {'rme':>10} {'cycles':>8}")
        print("-" * 100)
        for bench in benches:
            marker = "*" if any(bench is best for best in fastest) else " "
            print(f"{marker} {self.format_row(bench)}")
        print("=" * 100)

    def print_full_report(
        self, benches: Sequence[Benchmark], fastest: Sequence[Benchmark] = ()
    ) -> None:
        """Print header and table."""
        self.print_header()
        self.print_table(benches, fastest)
