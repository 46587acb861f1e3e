"""Tests for sequential suite runs."""

import pytest

from litmus import (
    Benchmark,
    BenchmarkContext,
    EventType,
    Suite,
    decode_results,
    encode_results,
)


def sum_small() -> int:
    return sum(range(100))


def sum_large() -> int:
    return sum(range(5_000))


def record_events(suite: Suite) -> list[str]:
    events: list[str] = []
    for event in EventType:
        suite.on(event, lambda _, *args, event=event: events.append(event.value))
    return events


class TestSuiteBuild:
    """Test adding benchmarks."""

    def test_add_is_chainable(self, context: BenchmarkContext) -> None:
        suite = Suite("sums", context=context).add(sum_small, "small").add(sum_large)

        assert len(suite) == 2
        assert [bench.name for bench in suite] == ["small", "sum_large"]
        assert all(isinstance(bench, Benchmark) for bench in suite)
        assert all(bench.context is context for bench in suite)

    def test_suite_config_is_default(self, context: BenchmarkContext) -> None:
        config = context.config.replace(init_run_count=3)
        other = context.config.replace(init_run_count=9)
        suite = Suite(config=config, context=context)
        suite.add(sum_small).add(sum_large, config=other)

        assert suite.benches[0].config is config
        assert suite.benches[1].config is other

    def test_rejects_unknown_options(self, context: BenchmarkContext) -> None:
        with pytest.raises(TypeError, match="on_done"):
            Suite(context=context, on_done=print)

    def test_listener_options_registered(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context, on_complete=print, on_abort=None)

        assert suite.listeners(EventType.COMPLETE) == [print]
        assert suite.listeners(EventType.ABORT) == []


class TestSuiteRun:
    """Test running suites synchronously."""

    def test_run(self, context: BenchmarkContext) -> None:
        suite = Suite("sums", context=context).add(sum_small).add(sum_large)
        finished: list[str] = []
        suite.on(EventType.CYCLE, lambda _, bench: finished.append(bench.name))
        events = record_events(suite)

        suite.run()

        assert not suite.running
        assert finished == ["sum_small", "sum_large"]
        assert events == ["start", "cycle", "cycle", "complete"]
        assert all(bench.hz > 0.0 for bench in suite)

    def test_empty_suite_completes(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context)
        events = record_events(suite)

        suite.run()

        assert events == ["start", "complete"]
        assert not suite.running

    def test_cycle_veto_stops_suite(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context)
        suite.add(sum_small).add(sum_large)
        events = record_events(suite)
        suite.on(EventType.CYCLE, lambda _, bench: False)

        suite.run()

        assert events.count("cycle") == 1
        assert events[-1] == "complete"
        assert suite.benches[0].hz > 0.0
        assert suite.benches[1].cycles == 0

    def test_abort_in_cycle_listener(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context)
        suite.add(sum_small).add(sum_large)
        suite.on(EventType.CYCLE, lambda s, bench: s.abort())
        events = record_events(suite)

        suite.run()

        assert suite.aborted
        assert not suite.running
        assert events.count("abort") == 1
        assert events[-1] == "complete"
        assert suite.benches[1].cycles == 0

    def test_abort_when_idle_is_noop(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context).add(sum_small)
        events = record_events(suite)

        suite.abort()

        assert events == []
        assert not suite.aborted

    def test_reset(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context).add(sum_small)
        suite.run()
        events = record_events(suite)

        suite.reset()

        assert events == ["reset"]
        assert suite.benches[0].hz == 0.0

    def test_reset_unchanged_suite_emits_nothing(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context).add(sum_small)
        events = record_events(suite)

        suite.reset()
        assert events == []

        suite.run()
        suite.reset()
        events.clear()
        suite.reset()
        assert events == []

    def test_reset_after_abort(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context).add(sum_small)
        suite.on(EventType.CYCLE, lambda s, bench: s.abort())
        suite.run()
        events = record_events(suite)

        suite.reset()

        assert events == ["reset"]
        assert not suite.aborted

    def test_error_does_not_stop_suite(self, context: BenchmarkContext) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        suite = Suite(context=context).add(boom).add(sum_small)
        suite.run()

        assert isinstance(suite.benches[0].error, RuntimeError)
        assert suite.benches[1].hz > 0.0


class TestSuiteResults:
    """Test ranking and snapshots."""

    @pytest.mark.slow
    def test_fastest_and_slowest(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context)
        suite.add(lambda: None, "fast").add(lambda: sum(range(20_000)), "slow")

        suite.run()

        assert [bench.name for bench in suite.fastest()] == ["fast"]
        assert [bench.name for bench in suite.slowest()] == ["slow"]

    def test_errored_benchmarks_not_ranked(self, context: BenchmarkContext) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        suite = Suite(context=context).add(boom, "boom").add(sum_small, "ok")
        suite.run()

        assert [bench.name for bench in suite.fastest()] == ["ok"]
        assert [bench.name for bench in suite.slowest()] == ["ok"]

    def test_to_results(self, context: BenchmarkContext) -> None:
        suite = Suite(context=context).add(sum_small).add(sum_large)
        suite.run()

        results = suite.to_results()

        assert [result.name for result in results] == ["sum_small", "sum_large"]
        assert decode_results(encode_results(results)) == results
