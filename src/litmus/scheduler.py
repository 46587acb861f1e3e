"""Cooperative scheduling of benchmark steps.

In asynchronous mode each step is deferred onto the running asyncio loop
after the benchmark's ``cycle_delay_s``; otherwise steps run immediately.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from litmus.events import EventType

if TYPE_CHECKING:
    from litmus.benchmark import Benchmark


def can_defer() -> bool:
    """True when called from inside a running event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def schedule(bench: Benchmark, callback: Callable[[], Any], async_: bool) -> None:
    """Run ``callback`` now, or after ``bench.config.cycle_delay_s`` when async.

    The pending handle is stored on ``bench.timer_id`` so ``abort()`` can
    cancel it.
    """
    if not (async_ and can_defer()):
        callback()
        return

    def fire() -> None:
        bench.timer_id = None
        callback()

    loop = asyncio.get_running_loop()
    bench.timer_id = loop.call_later(bench.config.cycle_delay_s, fire)


def invoke(
    benches: Sequence[Benchmark] | list[Benchmark],
    method_name: str,
    *args: Any,
    async_: bool = False,
    queued: bool = False,
    on_cycle: Callable[[Benchmark], Any] | None = None,
    on_complete: Callable[[Benchmark], Any] | None = None,
) -> None:
    """Call ``method_name(*args)`` on each benchmark in turn.

    Each benchmark must finish before the next one starts. In asynchronous
    mode finishing means emitting ``complete``, so only methods that end with
    that event (``run``) should be invoked asynchronously.

    Args:
        benches: The worklist. When ``queued``, items are popped from the front
            as they are started, so the caller may append or clear it while
            the walk is in progress.
        method_name: Name of the benchmark method to call.
        *args: Arguments passed to the method.
        async_: Defer each step onto the running event loop.
        queued: Consume ``benches`` as a queue instead of indexing it.
        on_cycle: Called after each benchmark finishes; returning ``False``
            stops the walk.
        on_complete: Called with the last benchmark once the walk ends.

    """
    async_ = async_ and can_defer()
    index = 0

    def next_after(bench: Benchmark) -> Benchmark | None:
        nonlocal index
        if on_cycle is not None and on_cycle(bench) is False:
            return None
        if queued:
            return benches.pop(0) if benches else None
        index += 1
        return benches[index] if index < len(benches) else None

    def finish(bench: Benchmark) -> None:
        if on_complete is not None:
            on_complete(bench)

    if queued:
        first = benches.pop(0) if benches else None
    else:
        first = benches[0] if benches else None
    if first is None:
        return

    if not async_:
        bench = first
        while bench is not None:
            getattr(bench, method_name)(*args)
            following = next_after(bench)
            if following is None:
                finish(bench)
            bench = following
        return

    def start(bench: Benchmark) -> None:
        bench.on(EventType.COMPLETE, on_done)
        getattr(bench, method_name)(*args)

    def on_done(bench: Benchmark) -> None:
        bench.remove_listener(EventType.COMPLETE, on_done)
        following = next_after(bench)
        if following is None:
            finish(bench)
        else:
            schedule(following, lambda: start(following), True)

    start(first)
