"""Command-line interface.

Benchmarks callables named as ``package.module:attribute`` targets::

    litmus json:dumps "mypkg.bench:parse_small" --max-time 2 --json out.json
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import sys
from collections.abc import Callable, Sequence

from litmus.config import BenchmarkConfig
from litmus.context import BenchmarkContext
from litmus.errors import LitmusError, PayloadError
from litmus.events import EventType
from litmus.logging import FileLogHandler, Logger, LoggerConfig, LogLevel
from litmus.reporting import SuiteReporter, encode_results
from litmus.suite import Suite


class BenchmarkCLI:
    """Builder for the litmus command-line interface.

    Provides the target and run-control arguments pre-configured. Uses
    builder pattern for extensibility.

    Args:
        description: Description for --help.
    """

    def __init__(self, description: str) -> None:
        self.parser = argparse.ArgumentParser(prog="litmus", description=description)
        self._add_common_args()

    def _add_common_args(self) -> None:
        """Add targets and run-control arguments."""
        self.parser.add_argument(
            "targets",
            nargs="+",
            metavar="MODULE:CALLABLE",
            help="Zero-argument callables to benchmark, e.g. 'json:dumps'",
        )
        self.parser.add_argument(
            "--max-time",
            "-t",
            type=float,
            default=None,
            help="Seconds allowed per benchmark before sampling stops (default: 8)",
        )
        self.parser.add_argument(
            "--min-time",
            type=float,
            default=None,
            help="Minimum seconds per cycle (default: derived from the clock)",
        )
        self.parser.add_argument(
            "--init-count",
            "-n",
            type=int,
            default=None,
            help="Payload calls in the first cycle (default: 5)",
        )
        self.parser.add_argument(
            "--async",
            "-a",
            dest="run_async",
            action="store_true",
            help="Run on an asyncio event loop, yielding between cycles",
        )

    def add_json_output(self) -> BenchmarkCLI:
        """Add --json argument for writing results to a file.

        Returns:
            Self for method chaining.
        """
        self.parser.add_argument(
            "--json",
            metavar="PATH",
            default=None,
            help="Write results as JSON to PATH",
        )
        return self

    def add_logging_args(self) -> BenchmarkCLI:
        """Add --log-level and --log-file arguments.

        Returns:
            Self for method chaining.
        """
        self.parser.add_argument(
            "--log-level",
            choices=[level.name for level in LogLevel],
            default=LogLevel.WARNING.name,
            help="Minimum engine log level (default: WARNING)",
        )
        self.parser.add_argument(
            "--log-file",
            metavar="PATH",
            default=None,
            help="Also append engine logs to PATH (must end with .txt)",
        )
        return self

    def parse(self, argv: Sequence[str] | None = None) -> argparse.Namespace:
        """Parse command-line arguments.

        Returns:
            Parsed arguments namespace.
        """
        return self.parser.parse_args(argv)


def load_target(target: str) -> Callable[[], object]:
    """Resolve ``package.module:attr.path`` to a callable.

    Raises:
        PayloadError: If the target is malformed, missing or not callable.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise PayloadError(f"Invalid target; expected 'module:callable' but got {target!r}")

    try:
        obj = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            obj = getattr(obj, attr)
    except (ImportError, AttributeError) as exc:
        raise PayloadError(f"Cannot load target {target!r}: {exc}") from exc

    if not callable(obj):
        raise PayloadError(f"Invalid target; {target!r} is not callable")
    return obj


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    """Apply command-line overrides on top of the environment configuration."""
    changes: dict[str, object] = {}
    if args.max_time is not None:
        changes["max_time_elapsed_s"] = args.max_time
    if args.min_time is not None:
        changes["min_time_s"] = args.min_time
    if args.init_count is not None:
        changes["init_run_count"] = args.init_count
    if args.run_async:
        changes["default_async"] = True
    return BenchmarkConfig.from_env().replace(**changes)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        0 on success, 1 if any benchmark errored, 2 on usage errors.
    """
    args = (
        BenchmarkCLI("Measure the throughput of Python callables.")
        .add_json_output()
        .add_logging_args()
        .parse(argv)
    )

    try:
        config = build_config(args)
        payloads = [(target, load_target(target)) for target in args.targets]
        handlers = [FileLogHandler(args.log_file, create=True)] if args.log_file else []
        logger = Logger(
            name="litmus",
            config=LoggerConfig(base_level=LogLevel[args.log_level], do_stdout=True),
            handlers=handlers,
        )
    except (LitmusError, ValueError) as exc:
        print(f"litmus: {exc}", file=sys.stderr)
        return 2

    context = BenchmarkContext(config=config, logger=logger)
    suite = Suite("litmus", config=config, context=context)
    for name, fn in payloads:
        suite.add(fn, name)
    suite.on(EventType.CYCLE, lambda _suite, bench: print(bench))

    try:
        if config.default_async:
            asyncio.run(suite.run_async())
        else:
            suite.run(async_=False)
    finally:
        logger.shutdown()

    print()
    SuiteReporter(f"litmus: {len(suite)} benchmark(s)").print_full_report(
        suite.benches, suite.fastest()
    )

    if args.json:
        with open(args.json, "wb") as file:
            file.write(encode_results(suite.to_results()))

    return 1 if any(bench.error is not None for bench in suite) else 0
