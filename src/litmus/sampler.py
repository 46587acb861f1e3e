"""Statistics-driven sampling sessions.

A session measures a benchmark by running a queue of clones, one after the
other, and treating each clone's final ``hz`` as one observation. After every
clone the confidence interval is recomputed; more clones are enqueued until
the relative margin of error reaches the target or the time budget runs out.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from litmus.events import EventType
from litmus.scheduler import invoke
from litmus.stats import SampleStatistics
from litmus.time import time_s

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark

# Above this RME (percent) sampling continues regardless of elapsed time.
RME_BLOWUP = 50.0


class Sampler:
    """Drives one sampling session for a primary benchmark.

    Args:
        bench: The primary benchmark, already marked running.
        async_: Run clones asynchronously.
    """

    def __init__(self, bench: Benchmark, async_: bool) -> None:
        context = bench.context
        self.bench = bench
        self.async_ = async_
        self.calibrating = bench.is_calibration

        self.state = context.payload_state(bench.fn)
        self.init_strategy = self.state.strategy
        self.init_unclockable = self.state.unclockable
        self.init_run_count = bench.init_run_count
        self.init_sample_size = bench.config.init_sample_size

        # Strategy the current sample was measured with; None until known.
        self.strategy = self.init_strategy
        self.calibrated = context.is_calibrated()

        self.queue: list[Benchmark] = []
        self.sample: list[Benchmark] = []

    def start(self) -> None:
        """Enqueue the initial clones and run them."""
        self._initialize()
        invoke(
            self.queue,
            "run",
            self.async_,
            async_=self.async_,
            queued=True,
            on_cycle=self._on_invoke_cycle,
        )

    def _initialize(self) -> None:
        self.bench.cycles = 0
        self.bench.init_run_count = self.init_run_count
        self._clear()
        self.bench.context.clear_compiled(self.bench.fn)
        self._enqueue(self.init_sample_size)

    def _clear(self) -> None:
        # In place: invoke() holds a reference to the queue.
        self.queue.clear()
        self.sample.clear()

    def _enqueue(self, count: int) -> None:
        for _ in range(count):
            self.queue.append(
                self.bench.clone(
                    computing=self.queue,
                    on_abort=None,
                    on_reset=None,
                    on_start=self._on_start,
                    on_cycle=self._on_cycle,
                    on_error=self._on_error,
                    on_complete=self._on_complete,
                )
            )

    def _on_start(self, clone: Benchmark) -> None:
        bench = self.bench
        context = bench.context
        # Restart the clock if calibrations interrupted the session.
        if not self.calibrating and not self.calibrated and context.is_calibrated():
            self.calibrated = True
            bench.times.start = time_s()
        clone.count = clone.init_run_count = bench.init_run_count
        self._on_cycle(clone)

    def _on_cycle(self, clone: Benchmark) -> None:
        bench = self.bench
        if bench.running:
            if clone.cycles:
                bench.count = clone.count
                bench.cycles += 1
                if math.isfinite(clone.hz):
                    bench.hz = clone.hz
                bench.times.period = clone.times.period
                if bench.emit(EventType.CYCLE) is False:
                    bench.abort()
        elif bench.aborted:
            clone.abort()

    def _on_error(self, clone: Benchmark, exc: BaseException) -> None:
        bench = self.bench
        if bench.running:
            bench.abort()
            bench.error = exc
            bench.emit(EventType.ERROR, exc)

    def _on_complete(self, clone: Benchmark) -> None:
        self.bench.init_run_count = clone.init_run_count
        if self.strategy is None:
            self.strategy = self.state.strategy
        if not clone.aborted and clone.error is None:
            self.sample.append(clone)

    def _on_invoke_cycle(self, clone: Benchmark) -> bool:
        bench = self.bench
        context = bench.context
        times = bench.times
        now = time_s()
        aborted = bench.aborted
        elapsed = now - times.start
        complete = False

        if aborted:
            complete = True
        elif self.strategy != self.state.strategy:
            context.logger.debug(
                f"Restarting sample of {bench.name!r}; strategy changed to {self.state.strategy!r}"
            )
            self.strategy = self.state.strategy
            times.start = time_s()
            self._initialize()
        elif self.state.unclockable:
            self._clear()
            complete = True
            bench.unclockable = True
            bench.hz = 0.0
            bench.count = clone.count
            bench.running = False
            times.stop = now
            times.elapsed = elapsed
        elif not self.queue or len(self.sample) > self.init_sample_size:
            stats = SampleStatistics.from_sample([member.hz for member in self.sample])
            rme = stats.rme

            if rme > bench.config.target_rme and (
                elapsed < bench.config.max_time_elapsed_s
                or rme > RME_BLOWUP
                or self.calibrating
                or self.queue
            ):
                if not self.queue:
                    self._enqueue(stats.size * 3 if rme > RME_BLOWUP else 1)
            else:
                complete = True

                bench.moe = stats.moe
                bench.rme = stats.rme
                bench.sd = stats.sd
                bench.sem = stats.sem

                bench.count = clone.count
                bench.running = False
                times.stop = now
                times.elapsed = elapsed

                if stats.mean and math.isfinite(stats.mean):
                    bench.hz = stats.mean
                    times.period = 1.0 / stats.mean
                    times.cycle = times.period * bench.count

        if complete:
            self._clear()
            context.clear_compiled(bench.fn)
            self.state.strategy = self.init_strategy
            self.state.unclockable = self.init_unclockable
            bench.init_run_count = self.init_run_count
            bench.emit(EventType.COMPLETE)
        return not aborted
