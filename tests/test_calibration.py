"""Tests for loop-overhead calibration."""

from litmus import Benchmark, BenchmarkContext, Calibration, Strategy
from litmus.calibration import calibrate, noop


class TestCalibration:
    """Test calibration benchmarks and the calibrate() entry point."""

    def test_calibrations_created_lazily(self, context: BenchmarkContext) -> None:
        calibrations = context.calibrations

        assert len(calibrations) == 1
        assert isinstance(calibrations[0], Calibration)
        assert calibrations[0].is_calibration
        assert calibrations[0].fn is noop
        assert context.payload_state(noop).strategy is Strategy.LOOPED
        assert context.calibrations is calibrations

    def test_not_calibrated_until_run(self, context: BenchmarkContext) -> None:
        assert not context.is_calibrated()

        context.calibrations[0].run()

        assert context.is_calibrated()
        cal = context.calibrations[0]
        assert cal.cycles > 0
        assert cal.hz > 0.0
        assert cal.times.period > 0.0

    def test_calibrate_runs_once(self, context: BenchmarkContext) -> None:
        bench = Benchmark(lambda: None, context=context)
        calls: list[Benchmark] = []

        assert calibrate(bench, calls.append) is False
        assert calls == [context.calibrations[0]]
        assert context.is_calibrated()

        assert calibrate(bench, calls.append) is True
        assert len(calls) == 1

    def test_context_delegates(self, context: BenchmarkContext) -> None:
        bench = Benchmark(lambda: None, context=context)
        calls: list[Benchmark] = []

        assert context.calibrate(bench, calls.append) is False
        assert len(calls) == 1

    def test_reset_calibrations(self, context: BenchmarkContext) -> None:
        context.calibrations[0].run()
        assert context.is_calibrated()

        context.reset_calibrations()

        assert not context.is_calibrated()

    def test_calibration_at(self, context: BenchmarkContext) -> None:
        assert context.calibration_at(0) is context.calibrations[0]
        assert context.calibration_at(3) is None

    def test_hybrid_payload_triggers_calibration(self, context: BenchmarkContext) -> None:
        config = context.config.replace(unroll_limit=16)
        bench = Benchmark(lambda: None, config=config, context=context)

        bench.run()

        assert context.is_calibrated()
        assert bench.error is None
        assert bench.hz > 0.0

    def test_unrolled_payload_skips_calibration(self, context: BenchmarkContext) -> None:
        bench = Benchmark(lambda: sum(range(2_000)), context=context)

        bench.run()

        assert not context.is_calibrated()
        assert bench.hz > 0.0

    def test_abort_cascades_to_calibrations(self, context: BenchmarkContext) -> None:
        cal = context.calibrations[0]
        aborted: list[Benchmark] = []
        cal.on("abort", aborted.append)
        config = context.config.replace(unroll_limit=16)
        bench = Benchmark(lambda: None, config=config, context=context)

        def abort_bench(_: Benchmark) -> None:
            if cal.cycles:
                bench.abort()

        cal.on("cycle", abort_bench)
        bench.run()

        assert bench.aborted
        assert not bench.running
        assert aborted == [cal]
