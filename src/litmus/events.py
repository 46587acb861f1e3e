"""Per-instance observer registry with vetoable dispatch."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, Self

Listener = Callable[..., Any]


class EventType(StrEnum):
    """Events emitted by benchmarks and suites."""

    START = "start"
    CYCLE = "cycle"
    COMPLETE = "complete"
    ERROR = "error"
    RESET = "reset"
    ABORT = "abort"


class EventEmitter:
    """Ordered listener registry keyed by event name.

    Listeners are called as ``listener(emitter, *args)``. A listener that
    returns exactly ``False`` stops dispatch of the current event and makes
    ``emit()`` return ``False``; any other return value is ignored.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Self:
        """Register ``listener`` for ``event``.

        Args:
            event: Event name, usually an ``EventType``.
            listener: Callable invoked with the emitter and any event args.

        Returns:
            Self for method chaining.

        Raises:
            TypeError: If ``listener`` is not callable.

        """
        if not callable(listener):
            raise TypeError(
                f"Invalid listener; expected callable but got {type(listener).__name__}"
            )
        self._listeners.setdefault(str(event), []).append(listener)
        return self

    add_listener = on

    def remove_listener(self, event: str, listener: Listener) -> Self:
        """Remove the first registration of ``listener`` for ``event``, if any."""
        listeners = self._listeners.get(str(event))
        if listeners and listener in listeners:
            listeners.remove(listener)
        return self

    def remove_all_listeners(self, event: str | None = None) -> Self:
        """Remove every listener of ``event``, or of all events when omitted."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(str(event), None)
        return self

    def listeners(self, event: str) -> list[Listener]:
        """Return a copy of the listeners registered for ``event``."""
        return list(self._listeners.get(str(event), ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Dispatch ``event`` to its listeners in registration order.

        Listeners added or removed during dispatch take effect from the next
        emission.

        Returns:
            False if a listener vetoed by returning ``False``, else True.

        """
        for listener in self.listeners(event):
            if listener(self, *args) is False:
                return False
        return True
