"""The benchmark run state machine."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Callable
from typing import Any

from msgspec import Struct

from litmus.compare import compare
from litmus.config import BenchmarkConfig
from litmus.context import BenchmarkContext, get_context
from litmus.errors import PayloadError
from litmus.events import EventEmitter, EventType
from litmus.executor import CycleResult, Strategy
from litmus.reporting import format_number
from litmus.sampler import Sampler
from litmus.scheduler import schedule
from litmus.time import time_s

# Divisors boosting the count after a cycle that clocked zero, keyed by cycle number.
CYCLE_DIVISORS = {1: 4096, 2: 512, 3: 64, 4: 8, 5: 0}

# Clocked times this close to the clock resolution are treated as zero.
RESOLUTION_RATIO = 0.9

_LISTENER_OPTIONS = {f"on_{event.value}": event for event in EventType}

_STAT_DEFAULTS: dict[str, Any] = {
    "moe": 0.0,
    "rme": 0.0,
    "sd": 0.0,
    "sem": 0.0,
    "aborted": False,
    "count": 0,
    "cycles": 0,
    "error": None,
    "hz": 0.0,
    "running": False,
    "unclockable": False,
}


class Times(Struct):
    """Timing data of a benchmark.

    Args:
        cycle: Seconds taken by the last cycle.
        elapsed: Seconds taken by the whole run.
        period: Seconds per payload call.
        start: Wall-clock timestamp when the run started.
        stop: Wall-clock timestamp when the run finished.
    """

    cycle: float = 0.0
    elapsed: float = 0.0
    period: float = 0.0
    start: float = 0.0
    stop: float = 0.0


class BenchmarkResult(Struct, frozen=True):
    """Immutable snapshot of a benchmark, suitable for JSON export."""

    name: str
    hz: float
    moe: float
    rme: float
    sd: float
    sem: float
    count: int
    cycles: int
    aborted: bool
    unclockable: bool
    error: str | None
    times: Times


class Benchmark(EventEmitter):
    """Measures the throughput of a zero-argument callable.

    Listeners may be registered with ``on_<event>`` keyword arguments, e.g.
    ``Benchmark(fn, on_complete=report)``.

    Args:
        fn: The payload.
        name: Display name. Defaults to the payload's ``__name__``.
        config: Tunables. Defaults to the context's configuration.
        context: Shared state. Defaults to ``get_context()``.
        computing: Set on clones created by a sampling session; such clones
            run cycles directly instead of starting a session of their own.
        **listeners: ``on_start``, ``on_cycle``, ``on_complete``, ``on_error``,
            ``on_reset`` or ``on_abort`` callables. ``None`` is ignored.

    Raises:
        PayloadError: If ``fn`` is not callable.
        TypeError: If an unknown keyword argument is given.
    """

    is_calibration = False

    def __init__(
        self,
        fn: Callable[[], object],
        name: str | None = None,
        *,
        config: BenchmarkConfig | None = None,
        context: BenchmarkContext | None = None,
        computing: list[Benchmark] | None = None,
        **listeners: Callable[..., Any] | None,
    ) -> None:
        super().__init__()
        if not callable(fn):
            raise PayloadError(
                f"Invalid payload; expected callable but got {type(fn).__name__}"
            )
        unknown = set(listeners) - set(_LISTENER_OPTIONS)
        if unknown:
            raise TypeError(f"Unexpected keyword arguments: {', '.join(sorted(unknown))}")

        self.fn = fn
        self.name = name if name is not None else getattr(fn, "__name__", repr(fn))
        self.context = context if context is not None else get_context()
        self.config = config if config is not None else self.context.config
        self.computing = computing
        self.uid = self.context.payload_state(fn).uid

        self.count = 0
        self.cycles = 0
        self.running: bool | None = False
        self.aborted = False
        self.error: BaseException | None = None
        self.hz = 0.0
        self.moe = 0.0
        self.rme = 0.0
        self.sd = 0.0
        self.sem = 0.0
        self.unclockable = False
        self.times = Times()
        self.init_run_count = self.config.init_run_count
        self.timer_id: asyncio.TimerHandle | None = None

        self._options: dict[str, Any] = {"name": name, "config": config, **listeners}
        for option, listener in listeners.items():
            if listener is not None:
                self.on(_LISTENER_OPTIONS[option], listener)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, uid={self.uid})"

    def __str__(self) -> str:
        cycles = self.cycles
        plural = "" if cycles == 1 else "s"
        return (
            f"{self.name} \xd7 {format_number(self.hz)} ops/sec "
            f"\xb1{self.rme:.2f}% ({cycles} cycle{plural})"
        )

    def run(self, async_: bool | None = None) -> Benchmark:
        """Measure the payload.

        Synchronous runs return once the result is final. Asynchronous runs
        return immediately when an event loop is running; the ``complete``
        event marks the end. Payload exceptions never escape: they are stored
        on ``error`` and reported through the ``error`` event.

        Args:
            async_: Defer steps onto the running event loop. Defaults to
                ``config.default_async``.

        Returns:
            Self.

        """
        if async_ is None:
            async_ = self.config.default_async

        # Not running, so reset() clears state without aborting.
        self.running = False
        self.reset()
        self.running = True
        self.count = self.init_run_count
        self.times.start = time_s()
        self.emit(EventType.START)

        if self.computing is not None:
            self._cycle(async_)
        else:
            Sampler(self, async_).start()
        return self

    async def run_async(self) -> Benchmark:
        """Run asynchronously on the current event loop and wait for completion."""
        loop = asyncio.get_running_loop()
        done: asyncio.Future[Benchmark] = loop.create_future()

        def resolve(bench: Benchmark) -> None:
            if not done.done():
                done.set_result(bench)

        self.on(EventType.COMPLETE, resolve)
        try:
            self.run(async_=True)
            await done
        finally:
            self.remove_listener(EventType.COMPLETE, resolve)
        return self

    def abort(self) -> Benchmark:
        """Stop a running benchmark without recording results.

        Does nothing unless running.
        """
        if self.running:
            if not self.is_calibration:
                self.context.abort_calibrations()
            if self.timer_id is not None:
                self.timer_id.cancel()
                self.timer_id = None
            # A falsy value that still differs from the default, so reset()
            # clears state and emits ``reset`` instead of aborting again.
            self.running = None
            self.reset()
            self.aborted = True
            self.emit(EventType.ABORT)
        return self

    def reset(self) -> Benchmark:
        """Restore statistics and timing data, aborting first if running.

        ``reset`` is emitted only when something actually changed.
        """
        if self.running:
            self.abort()
            self.aborted = False
            return self

        changed = False
        for key, default in _STAT_DEFAULTS.items():
            if getattr(self, key) != default:
                setattr(self, key, default)
                changed = True
        for key in Times.__struct_fields__:
            if getattr(self.times, key) != 0.0:
                setattr(self.times, key, 0.0)
                changed = True

        if changed:
            self.emit(EventType.RESET)
        return self

    def clone(self, **overrides: Any) -> Benchmark:
        """Create a fresh benchmark with the same payload, options and context.

        The working ``init_run_count`` is carried over; statistics are not.

        Args:
            **overrides: Constructor options replacing this benchmark's.

        Returns:
            The new benchmark.

        """
        options = dict(self._options)
        computing = overrides.pop("computing", self.computing)
        options.update(overrides)
        result = type(self)(self.fn, context=self.context, computing=computing, **options)
        result.init_run_count = self.init_run_count
        return result

    def compare(self, other: Benchmark) -> int:
        """Return 1 if faster than ``other``, -1 if slower, 0 if indistinguishable."""
        return compare(self, other)

    def to_result(self) -> BenchmarkResult:
        """Snapshot the current statistics."""
        return BenchmarkResult(
            name=self.name,
            hz=self.hz,
            moe=self.moe,
            rme=self.rme,
            sd=self.sd,
            sem=self.sem,
            count=self.count,
            cycles=self.cycles,
            aborted=self.aborted,
            unclockable=self.unclockable,
            error=repr(self.error) if self.error is not None else None,
            times=Times(**{key: getattr(self.times, key) for key in Times.__struct_fields__}),
        )

    def _fail(self, exc: BaseException) -> None:
        self.context.logger.error(f"Benchmark {self.name!r} raised {exc!r}")
        self.abort()
        self.error = exc
        self.emit(EventType.ERROR, exc)

    def _cycle(self, async_: bool) -> None:
        """Execute one cycle, calibrating first when the payload needs it."""
        result = CycleResult(time=0.0, looped=0)
        if self.running:
            self.cycles += 1
            try:
                result = self.context.executor.clock(self)
            except Exception as exc:
                self._fail(exc)

        if not self.running:
            self._finish(result, async_)
            return

        def on_calibrated(cal: Benchmark) -> None:
            if cal.aborted:
                self.abort()
                self.emit(EventType.COMPLETE)
            elif self.running:
                schedule(self, lambda: self._finish(result, async_), async_)

        strategy = self.context.payload_state(self.fn).strategy
        if (
            strategy is None
            or strategy > Strategy.HYBRID
            or self.is_calibration
            or self.context.calibrate(self, on_calibrated, async_)
        ):
            self._finish(result, async_)

    def _finish(self, result: CycleResult, async_: bool) -> None:
        """Turn a cycle time into a rate and decide whether to cycle again."""
        count = self.count

        if self.running:
            context = self.context
            state = context.payload_state(self.fn)
            times = self.times
            min_time = context.min_time_s(self.config)

            overhead = 0.0
            index = self.config.calibration_index
            if not self.is_calibration and (index > 0 or (state.strategy or 0) < Strategy.UNROLLED):
                cal = context.calibration_at(index)
                if cal is not None:
                    overhead = cal.times.period

            clocked = times.cycle = max(0.0, result.time - overhead * result.looped)

            resolution = context.clock.resolution_s
            if clocked and min(resolution, clocked) / max(resolution, clocked) > RESOLUTION_RATIO:
                clocked = 0.0

            period = times.period = clocked / count
            self.hz = 1.0 / period if period else math.inf

            self.running = not state.unclockable and clocked < min_time
            # Later clones start from here instead of working up again.
            self.init_run_count = count

            if self.running:
                if not clocked:
                    divisor = CYCLE_DIVISORS.get(self.cycles)
                    if divisor is not None:
                        count = math.floor(4e6 / divisor) if divisor else math.inf
                if count <= self.count:
                    count += math.ceil((min_time - clocked) / period) if period else math.inf
                if math.isinf(count):
                    self.running = False
                    state.unclockable = True
                    context.clear_compiled(self.fn)
                    context.logger.info(f"Benchmark {self.name!r} is unclockable")

            if self.emit(EventType.CYCLE) is False:
                self.abort()

        if self.running:
            self.count = int(count)
            schedule(self, lambda: self._cycle(async_), async_)
        else:
            self.emit(EventType.COMPLETE)
