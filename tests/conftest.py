from collections.abc import Iterator

import pytest

from litmus import BenchmarkConfig, BenchmarkContext, set_context

# Short cycles and sessions so full runs finish in well under a second.
FAST_CONFIG = BenchmarkConfig(
    cycle_delay_s=0.0,
    max_time_elapsed_s=0.1,
    min_time_s=0.002,
    target_rme=5.0,
)


def pytest_configure(config: pytest.Config) -> None:
    """Register shared markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture
def fast_config() -> BenchmarkConfig:
    """Return a configuration tuned for quick test runs."""
    return FAST_CONFIG


@pytest.fixture
def context(fast_config: BenchmarkConfig) -> Iterator[BenchmarkContext]:
    """Install a fresh process-wide context so calibrations and plans start cold."""
    ctx = BenchmarkContext(config=fast_config)
    previous = set_context(ctx)
    try:
        yield ctx
    finally:
        ctx.reset_calibrations()
        set_context(previous)

