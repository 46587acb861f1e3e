"""Tests for cycle execution and loop amortization."""

import ast

import pytest

from litmus import Benchmark, BenchmarkContext, Calibration
from litmus.executor import CycleResult, Strategy, synthesize, _call_stmt


class Counter:
    """Payload counting its own invocations."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def timed(bench: Benchmark, count: int) -> CycleResult:
    bench.count = count
    return bench.context.executor.clock(bench)


class TestSynthesize:
    """Test plan synthesis."""

    def test_plan_calls_payload_and_returns_token(self) -> None:
        counter = Counter()
        token = object()
        plan = synthesize("test", [_call_stmt()] * 3)

        start, stop, returned = plan(counter, iter(range(10)).__next__, token, None)

        assert counter.calls == 3
        assert (start, stop) == (0, 1)
        assert returned is token

    def test_plan_has_no_builtins(self) -> None:
        plan = synthesize("test", ast.parse("len([])").body)

        assert plan.__globals__["__builtins__"] == {}
        with pytest.raises(NameError):
            plan(None, iter(range(10)).__next__, object(), None)


class TestCycleExecutor:
    """Test CycleExecutor strategies."""

    def test_first_cycle_probes_then_unrolls(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)

        result = timed(bench, 10)

        assert context.payload_state(counter).strategy is Strategy.UNROLLED
        # One extra call from the probe.
        assert counter.calls == 11
        assert result.looped == 0
        assert result.time >= 0.0

    def test_plan_reused_for_same_count(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)
        uid = context.payload_state(counter).uid

        timed(bench, 10)
        compiled = context.compiled[uid]
        timed(bench, 10)

        assert context.compiled[uid] is compiled
        assert counter.calls == 21

    def test_new_count_builds_from_cached_block(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)
        uid = context.payload_state(counter).uid

        timed(bench, 5)
        timed(bench, 12)

        assert context.compiled[uid].count == 12
        assert len(context.compiled[uid].block) == 12
        assert counter.calls == 1 + 5 + 12

    @pytest.mark.parametrize(
        "count, limit, looped",
        [(20, 8, 3), (26, 10, 3), (100, 10, 14), (7, 8, 1), (5, 8, 0)],
    )
    def test_hybrid_calls_payload_exactly_count_times(
        self, context: BenchmarkContext, count: int, limit: int, looped: int
    ) -> None:
        counter = Counter()
        config = context.config.replace(unroll_limit=limit)
        bench = Benchmark(counter, config=config, context=context)
        state = context.payload_state(counter)
        state.strategy = Strategy.HYBRID

        result = timed(bench, count)

        assert counter.calls == count
        assert result.looped == looped

    def test_switches_to_hybrid_above_unroll_limit(self, context: BenchmarkContext) -> None:
        counter = Counter()
        config = context.config.replace(unroll_limit=16)
        bench = Benchmark(counter, config=config, context=context)

        timed(bench, 8)
        assert context.payload_state(counter).strategy is Strategy.UNROLLED

        result = timed(bench, 40)
        assert context.payload_state(counter).strategy is Strategy.HYBRID
        assert result.looped == 40 // 12
        assert counter.calls == 1 + 8 + 40

    def test_looped_strategy(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)
        context.payload_state(counter).strategy = Strategy.LOOPED

        result = timed(bench, 50)

        assert counter.calls == 50
        assert result.looped == 50
        assert context.compiled == {}

    def test_unclockable_payload_is_not_run(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)
        context.payload_state(counter).unclockable = True

        assert timed(bench, 50) == CycleResult(time=0.0, looped=0)
        assert counter.calls == 0

    def test_calibration_times_bare_loop(self, context: BenchmarkContext) -> None:
        counter = Counter()
        cal = Calibration(counter, context=context)

        result = timed(cal, 1_000)

        assert result.looped == 1_000
        assert counter.calls == 0

    def test_payload_errors_propagate(self, context: BenchmarkContext) -> None:
        def boom() -> None:
            raise ValueError("boom")

        bench = Benchmark(boom, context=context)
        with pytest.raises(ValueError, match="boom"):
            timed(bench, 5)

    def test_clear_compiled(self, context: BenchmarkContext) -> None:
        counter = Counter()
        bench = Benchmark(counter, context=context)
        timed(bench, 3)

        context.clear_compiled(counter)

        assert context.payload_state(counter).uid not in context.compiled
