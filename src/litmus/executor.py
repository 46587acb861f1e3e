"""Timed execution of a payload with loop amortization.

A cycle calls the payload ``count`` times between two clock reads. To keep
loop overhead out of the measurement for very fast payloads, the calls are
laid out by a synthesized plan:

- ``UNROLLED``: ``count`` straight-line ``fn()`` statements.
- ``HYBRID``: a counted loop around a large unrolled block, followed by an
  unrolled remainder. Used once ``count`` exceeds the unroll limit.
- ``LOOPED``: a plain counted loop, used when plan synthesis is unavailable.

Only the cycle timing lives here; turning cycle times into rates is done by
``Benchmark``.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import repeat
from typing import TYPE_CHECKING, Any

from msgspec import Struct

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark
    from litmus.context import BenchmarkContext, PayloadState

# Share of the unroll limit used for the inner block of a hybrid plan.
HYBRID_FILL = 0.75

_PLAN_TEMPLATE = """
def plan(fn, ticks, token, repeat):
    start = ticks()
    stop = ticks()
    return start, stop, token
"""

# Exceptions raised while building or compiling a plan, as opposed to by the payload.
_SYNTHESIS_ERRORS = (SyntaxError, ValueError, TypeError, RecursionError, MemoryError)


class Strategy(IntEnum):
    """How a payload's repetitions are laid out within a cycle."""

    LOOPED = -1
    HYBRID = 0
    UNROLLED = 1


class CycleResult(Struct, frozen=True):
    """Outcome of one timed execution.

    Args:
        time: Seconds between the two clock reads.
        looped: Loop iterations whose overhead should be subtracted.
    """

    time: float
    looped: int


@dataclass
class CompiledCycle:
    """A synthesized plan cached for one payload and repetition count."""

    count: int
    strategy: Strategy
    plan: Callable[..., tuple[int, int, Any]]
    looped: int = 0
    block: list[ast.stmt] = field(default_factory=list)


def _call_stmt() -> ast.stmt:
    return ast.Expr(ast.Call(ast.Name("fn", ast.Load()), [], []))


def _loop_stmt(iterations: int, body: list[ast.stmt]) -> ast.stmt:
    loop = ast.parse(f"for _ in repeat(None, {iterations}):\n    pass").body[0]
    loop.body = body
    return loop


def synthesize(name: str, body: list[ast.stmt]) -> Callable[..., tuple[int, int, Any]]:
    """Compile ``body`` between the two clock reads of a plan function.

    The returned callable has the signature ``plan(fn, ticks, token, repeat)``
    and returns ``(start_ticks, stop_ticks, token)``.

    Args:
        name: Label used as the plan's pseudo filename.
        body: Statements to time.

    Returns:
        The compiled plan.

    """
    module = ast.parse(_PLAN_TEMPLATE)
    func = module.body[0]
    func.body[1:1] = body
    ast.fix_missing_locations(module)

    # Plans only touch their parameters.
    namespace: dict[str, Any] = {"__builtins__": {}}
    exec(compile(module, f"<litmus:{name}>", "exec"), namespace)
    return namespace["plan"]


def looped_plan(fn, ticks, token, count):
    """Time ``count`` calls of ``fn`` in a plain counted loop."""
    start = ticks()
    for _ in repeat(None, count):
        fn()
    stop = ticks()
    return start, stop, token


def bare_plan(fn, ticks, token, count):
    """Time ``count`` iterations of an empty counted loop; ``fn`` is not called."""
    start = ticks()
    for _ in repeat(None, count):
        pass
    stop = ticks()
    return start, stop, token


class CycleExecutor:
    """Executes and times benchmark cycles for one context.

    Args:
        context: Owner of the clock, payload states and plan cache.
    """

    def __init__(self, context: BenchmarkContext) -> None:
        self._context = context

    def clock(self, bench: Benchmark) -> CycleResult:
        """Execute one cycle of ``bench`` (``bench.count`` calls) and time it.

        Exceptions raised by the payload propagate to the caller.

        Args:
            bench: The benchmark whose payload and count are used.

        Returns:
            The measured time and the number of loop iterations it includes.

        """
        context = self._context
        clock = context.clock
        state = context.payload_state(bench.fn)
        count = bench.count

        if state.unclockable:
            return CycleResult(time=0.0, looped=0)

        if bench.is_calibration:
            start, stop, _ = bare_plan(bench.fn, clock.ticks, context.token, count)
            return CycleResult(time=clock.elapsed(start, stop), looped=count)

        if state.strategy is None:
            state.strategy = self._probe(bench, state)

        if state.strategy is not Strategy.LOOPED:
            compiled = self._compiled_for(bench, state, count)
            if compiled is not None:
                start, stop, _ = compiled.plan(bench.fn, clock.ticks, context.token, repeat)
                return CycleResult(time=clock.elapsed(start, stop), looped=compiled.looped)

        start, stop, _ = looped_plan(bench.fn, clock.ticks, context.token, count)
        return CycleResult(time=clock.elapsed(start, stop), looped=count)

    def _probe(self, bench: Benchmark, state: PayloadState) -> Strategy:
        """Run a one-call plan and check that it reaches its final statement."""
        context = self._context
        try:
            plan = synthesize(f"probe-{state.uid}", [_call_stmt()])
        except _SYNTHESIS_ERRORS as exc:
            context.logger.warning(f"Plan synthesis failed for {bench.name!r}, using loop: {exc!r}")
            return Strategy.LOOPED

        _, _, token = plan(bench.fn, context.clock.ticks, context.token, repeat)
        if token is not context.token:
            context.logger.warning(f"Plan for {bench.name!r} exited early, using loop")
            return Strategy.LOOPED
        return Strategy.UNROLLED

    def _compiled_for(
        self, bench: Benchmark, state: PayloadState, count: int
    ) -> CompiledCycle | None:
        context = self._context
        cached = context.compiled.get(state.uid)
        if cached is not None and cached.count == count and cached.strategy is state.strategy:
            return cached

        limit = bench.config.unroll_limit
        if state.strategy is Strategy.UNROLLED and count > limit:
            state.strategy = Strategy.HYBRID
            context.logger.debug(
                f"Switching {bench.name!r} to hybrid plans; count {count} exceeds {limit}"
            )

        try:
            compiled = self._build(state, count, limit, cached)
        except _SYNTHESIS_ERRORS as exc:
            state.strategy = Strategy.LOOPED
            context.clear_compiled(bench.fn)
            context.logger.warning(f"Plan synthesis failed for {bench.name!r}, using loop: {exc!r}")
            return None

        context.compiled[state.uid] = compiled
        return compiled

    def _build(
        self,
        state: PayloadState,
        count: int,
        limit: int,
        cached: CompiledCycle | None,
    ) -> CompiledCycle:
        call = _call_stmt()

        if state.strategy is Strategy.UNROLLED:
            if cached is not None and cached.strategy is Strategy.UNROLLED and cached.block:
                into, remainder = divmod(count, len(cached.block))
                block = cached.block * into + [call] * remainder
            else:
                block = [call] * count
            plan = synthesize(f"unrolled-{state.uid}", block)
            return CompiledCycle(count=count, strategy=state.strategy, plan=plan, block=block)

        most = max(1, int(limit * HYBRID_FILL))
        outer, remainder = divmod(count, most)
        block_size = most
        if outer and remainder:
            # Move as much of the remainder as fits into the looped block.
            shift = min(remainder // outer, limit - most)
            block_size += shift
            remainder -= shift * outer

        body = [_loop_stmt(outer, [call] * block_size)] if outer else []
        body += [call] * remainder
        plan = synthesize(f"hybrid-{state.uid}", body)
        return CompiledCycle(count=count, strategy=state.strategy, plan=plan, looped=outer)
