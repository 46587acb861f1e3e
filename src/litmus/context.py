"""Process-wide state shared by benchmarks.

Payload strategies, compiled plans and calibrations outlive individual
benchmarks: clones and later runs of the same payload reuse them. A
``BenchmarkContext`` owns that state together with the clock and logger.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from litmus.config import BenchmarkConfig
from litmus.executor import CompiledCycle, CycleExecutor, Strategy
from litmus.logging import Logger
from litmus.time import MIN_TIME_FLOOR_S, Clock

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark
    from litmus.calibration import Calibration


@dataclass
class PayloadState:
    """Measurement state attached to one payload callable.

    Args:
        uid: Identifier unique within the owning context.
        fn: The payload itself, kept alive so its ``id()`` stays unique.
        strategy: Plan layout, or None until the payload is probed.
        unclockable: Set when the payload is too fast to measure.
    """

    uid: int
    fn: Callable[[], object]
    strategy: Strategy | None = None
    unclockable: bool = False


class BenchmarkContext:
    """Shared clock, logger, payload states, plan cache and calibrations.

    Args:
        config: Default configuration for benchmarks created in this context
            and for its calibrations. Defaults to ``BenchmarkConfig.default()``.
        clock: Clock used to time cycles. Defaults to ``Clock.best()``.
        logger: Logger for engine diagnostics. Defaults to a WARNING-level
            logger named ``litmus``.
    """

    def __init__(
        self,
        config: BenchmarkConfig | None = None,
        clock: Clock | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.config = config if config is not None else BenchmarkConfig.default()
        self.clock = clock if clock is not None else Clock.best()
        self.logger = logger if logger is not None else Logger("litmus")

        # Returned by synthesized plans to prove they ran to completion.
        self.token = object()
        self.executor = CycleExecutor(self)
        self.compiled: dict[int, CompiledCycle] = {}

        self._payloads: dict[int, PayloadState] = {}
        self._uids = itertools.count(1)
        self._calibrations: list[Calibration] | None = None

    def payload_state(self, fn: Callable[[], object]) -> PayloadState:
        """Return the state of ``fn``, registering it on first use.

        The context holds a strong reference to every registered payload until
        ``forget(fn)`` is called, so long-lived contexts should forget payloads
        they will not measure again.
        """
        state = self._payloads.get(id(fn))
        if state is None:
            state = PayloadState(uid=next(self._uids), fn=fn)
            self._payloads[id(fn)] = state
        return state

    def clear_compiled(self, fn: Callable[[], object]) -> None:
        """Drop the cached plan of ``fn``, if any."""
        state = self._payloads.get(id(fn))
        if state is not None:
            self.compiled.pop(state.uid, None)

    def forget(self, fn: Callable[[], object]) -> bool:
        """Drop the state and cached plan of ``fn``.

        A later benchmark of ``fn`` starts cold with a new uid.

        Returns:
            True if ``fn`` was registered.

        """
        state = self._payloads.pop(id(fn), None)
        if state is None:
            return False
        self.compiled.pop(state.uid, None)
        return True

    def min_time_s(self, config: BenchmarkConfig) -> float:
        """Resolve the minimum cycle duration for ``config``."""
        if config.min_time_s:
            return config.min_time_s
        return max(self.clock.min_time_s, MIN_TIME_FLOOR_S)

    @property
    def calibrations(self) -> list[Calibration]:
        """Calibration benchmarks, created on first access."""
        if self._calibrations is None:
            from litmus.calibration import Calibration, noop

            self.payload_state(noop).strategy = Strategy.LOOPED
            self._calibrations = [Calibration(noop, name="noop loop", context=self)]
        return self._calibrations

    def calibration_at(self, index: int) -> Calibration | None:
        """Return calibration ``index``, or None when out of range."""
        calibrations = self.calibrations
        return calibrations[index] if index < len(calibrations) else None

    def is_calibrated(self) -> bool:
        """True once every calibration has completed at least one cycle."""
        return all(cal.cycles for cal in self.calibrations)

    def calibrate(
        self,
        bench: Benchmark,
        callback: Callable[[Benchmark], object],
        async_: bool = False,
    ) -> bool:
        """Run the calibrations if needed; see ``litmus.calibration.calibrate``."""
        from litmus.calibration import calibrate

        return calibrate(bench, callback, async_)

    def abort_calibrations(self) -> None:
        """Abort any calibration currently running."""
        for cal in self._calibrations or ():
            cal.abort()

    def reset_calibrations(self) -> None:
        """Abort and discard calibrations so the next need recalibrates."""
        self.abort_calibrations()
        self._calibrations = None


_default_context: BenchmarkContext | None = None


def get_context() -> BenchmarkContext:
    """Return the process-wide context, creating it from the environment."""
    global _default_context
    if _default_context is None:
        _default_context = BenchmarkContext(config=BenchmarkConfig.from_env())
    return _default_context


def set_context(context: BenchmarkContext | None) -> BenchmarkContext | None:
    """Replace the process-wide context.

    Args:
        context: The new context, or None to recreate lazily on next use.

    Returns:
        The previous context.

    """
    global _default_context
    previous, _default_context = _default_context, context
    return previous
