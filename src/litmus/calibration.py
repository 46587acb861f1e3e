"""Measurement of per-iteration harness overhead.

Looped and hybrid plans pay for a loop iteration per payload call (or per
block of calls). Calibrations time an empty loop so that cost can be
subtracted from every cycle that includes loop iterations.
"""

from __future__ import annotations

from collections.abc import Callable

from litmus.benchmark import Benchmark
from litmus.scheduler import invoke


def noop() -> None:
    """Payload of the calibration benchmarks."""


class Calibration(Benchmark):
    """A benchmark measuring the cost of one empty loop iteration.

    Calibrations always time a plain counted loop and never subtract overhead
    from their own cycles.
    """

    is_calibration = True


def calibrate(
    bench: Benchmark,
    callback: Callable[[Benchmark], object],
    async_: bool = False,
) -> bool:
    """Ensure the context's calibrations have run before ``bench`` finishes a cycle.

    When calibrations are still needed they are run (asynchronously if
    ``async_``), stopping early if either a calibration or ``bench`` is
    aborted, and ``callback`` is called with the last calibration once they
    end. The caller must then wait for the callback.

    Args:
        bench: The benchmark waiting on calibration.
        callback: Called with the last calibration run.
        async_: Run the calibrations asynchronously.

    Returns:
        True if already calibrated (``callback`` is not called), else False.

    """
    context = bench.context
    if context.is_calibrated():
        return True

    context.logger.info(f"Calibrating loop overhead for {bench.name!r}")

    def on_cycle(cal: Benchmark) -> bool:
        return not (cal.aborted or bench.aborted)

    invoke(
        context.calibrations,
        "run",
        async_,
        async_=async_,
        on_cycle=on_cycle,
        on_complete=callback,
    )
    return False
