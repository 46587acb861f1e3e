"""Sequential runs of several benchmarks."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from typing import Any, Self

from litmus.benchmark import Benchmark, BenchmarkResult
from litmus.compare import fastest, slowest
from litmus.config import BenchmarkConfig
from litmus.context import BenchmarkContext, get_context
from litmus.events import EventEmitter, EventType
from litmus.scheduler import invoke

_LISTENER_OPTIONS = {f"on_{event.value}": event for event in EventType}


class Suite(EventEmitter):
    """An ordered collection of benchmarks run one after another.

    Emits ``start``, ``cycle`` (with the finished benchmark) after each
    benchmark, ``complete``, ``abort`` and ``reset``. A ``cycle`` listener
    returning ``False`` stops the remaining benchmarks.

    Args:
        name: Display name.
        config: Configuration given to benchmarks added without one.
        context: Shared state for all benchmarks in the suite.
        **listeners: ``on_<event>`` callables, as for ``Benchmark``.
    """

    def __init__(
        self,
        name: str = "",
        *,
        config: BenchmarkConfig | None = None,
        context: BenchmarkContext | None = None,
        **listeners: Callable[..., Any] | None,
    ) -> None:
        super().__init__()
        unknown = set(listeners) - set(_LISTENER_OPTIONS)
        if unknown:
            raise TypeError(f"Unexpected keyword arguments: {', '.join(sorted(unknown))}")

        self.name = name
        self.context = context if context is not None else get_context()
        self.config = config if config is not None else self.context.config
        self.benches: list[Benchmark] = []
        self.running = False
        self.aborted = False

        for option, listener in listeners.items():
            if listener is not None:
                self.on(_LISTENER_OPTIONS[option], listener)

    def __len__(self) -> int:
        return len(self.benches)

    def __iter__(self) -> Iterator[Benchmark]:
        return iter(self.benches)

    def add(self, fn: Callable[[], object], name: str | None = None, **options: Any) -> Self:
        """Append a benchmark of ``fn``.

        Args:
            fn: The payload.
            name: Display name.
            **options: Further ``Benchmark`` keyword arguments.

        Returns:
            Self for method chaining.

        """
        options.setdefault("config", self.config)
        self.benches.append(Benchmark(fn, name, context=self.context, **options))
        return self

    def run(self, async_: bool | None = None) -> Self:
        """Run every benchmark in order.

        Args:
            async_: Defer steps onto the running event loop. Defaults to
                ``config.default_async``.

        Returns:
            Self.

        """
        if async_ is None:
            async_ = self.config.default_async

        self.running = True
        self.aborted = False
        self.emit(EventType.START)

        if not self.benches:
            self._on_done(None)
            return self

        invoke(
            self.benches,
            "run",
            async_,
            async_=async_,
            on_cycle=self._on_bench_done,
            on_complete=self._on_done,
        )
        return self

    async def run_async(self) -> Self:
        """Run asynchronously on the current event loop and wait for completion."""
        loop = asyncio.get_running_loop()
        done: asyncio.Future[Suite] = loop.create_future()

        def resolve(suite: Suite) -> None:
            if not done.done():
                done.set_result(suite)

        self.on(EventType.COMPLETE, resolve)
        try:
            self.run(async_=True)
            await done
        finally:
            self.remove_listener(EventType.COMPLETE, resolve)
        return self

    def abort(self) -> Self:
        """Abort the running benchmark and skip the rest. No-op unless running."""
        if self.running:
            self.running = False
            self.aborted = True
            for bench in self.benches:
                bench.abort()
            self.emit(EventType.ABORT)
        return self

    def reset(self) -> Self:
        """Abort if running, then reset every benchmark.

        ``reset`` is emitted only when the suite or one of its benchmarks
        actually changed.
        """
        changed = bool(self.running or self.aborted)
        if self.running:
            self.abort()
        self.aborted = False

        resets: list[Benchmark] = []
        record = resets.append
        for bench in self.benches:
            bench.on(EventType.RESET, record)
            try:
                bench.reset()
            finally:
                bench.remove_listener(EventType.RESET, record)

        if changed or resets:
            self.emit(EventType.RESET)
        return self

    def fastest(self) -> list[Benchmark]:
        """Benchmarks statistically tied for the highest throughput."""
        return fastest(self.benches)

    def slowest(self) -> list[Benchmark]:
        """Benchmarks statistically tied for the lowest throughput."""
        return slowest(self.benches)

    def to_results(self) -> list[BenchmarkResult]:
        """Snapshot every benchmark."""
        return [bench.to_result() for bench in self.benches]

    def _on_bench_done(self, bench: Benchmark) -> bool:
        if self.aborted:
            return False
        proceed = self.emit(EventType.CYCLE, bench)
        return proceed and not self.aborted

    def _on_done(self, bench: Benchmark | None) -> None:
        self.running = False
        self.emit(EventType.COMPLETE)
