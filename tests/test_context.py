"""Tests for shared benchmark state."""

import itertools

from litmus import Benchmark, BenchmarkConfig, BenchmarkContext, Clock, get_context, set_context
from litmus.time import MIN_TIME_FLOOR_S


def sum_loop() -> int:
    return sum(range(100))


class TestPayloadState:
    """Registration and release of payloads."""

    def test_state_registered_once(self, context: BenchmarkContext) -> None:
        state = context.payload_state(sum_loop)

        assert context.payload_state(sum_loop) is state
        assert state.fn is sum_loop
        assert state.strategy is None
        assert not state.unclockable

    def test_forget(self, context: BenchmarkContext) -> None:
        bench = Benchmark(sum_loop, context=context)
        bench.run()
        old = context.payload_state(sum_loop)
        context.compiled[old.uid] = object()

        assert context.forget(sum_loop) is True

        assert old.uid not in context.compiled
        fresh = context.payload_state(sum_loop)
        assert fresh is not old
        assert fresh.uid != old.uid

    def test_forget_unknown(self, context: BenchmarkContext) -> None:
        assert context.forget(lambda: None) is False

    def test_uids_not_reused_after_forget(self, context: BenchmarkContext) -> None:
        first, second = (lambda: 1), (lambda: 2)
        first_uid = context.payload_state(first).uid
        context.forget(first)

        assert context.payload_state(second).uid != first_uid

    def test_clear_compiled(self, context: BenchmarkContext) -> None:
        uid = context.payload_state(sum_loop).uid
        context.compiled[uid] = object()

        context.clear_compiled(sum_loop)
        context.clear_compiled(lambda: None)

        assert uid not in context.compiled


class TestContextConfig:
    """Minimum cycle time and the process-wide default."""

    def test_min_time_from_config(self) -> None:
        context = BenchmarkContext(config=BenchmarkConfig(min_time_s=0.01))
        assert context.min_time_s(context.config) == 0.01

    def test_min_time_floor(self) -> None:
        clock = Clock("fine", itertools.count(step=1_000).__next__, 1_000_000_000)
        context = BenchmarkContext(clock=clock)

        assert context.min_time_s(context.config) == MIN_TIME_FLOOR_S

    def test_min_time_coarse_clock(self) -> None:
        clock = Clock("coarse", itertools.count(step=15_000_000).__next__, 1_000_000_000)
        context = BenchmarkContext(clock=clock)

        assert context.min_time_s(context.config) == 0.8

    def test_set_context_returns_previous(self, context: BenchmarkContext) -> None:
        other = BenchmarkContext(config=context.config)

        assert set_context(other) is context
        assert get_context() is other
        assert set_context(context) is other
