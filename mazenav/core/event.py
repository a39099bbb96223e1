"""Observer-style event used for agent notifications."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class Event(Generic[T]):
    """
    Multicast notification.

    Usage:
        agent.on_waypoint_reached += lambda index: print(index)
        agent.on_destination_reached += on_arrived
        agent.on_destination_reached -= on_arrived

    Handlers are called in subscription order. A handler may unsubscribe
    itself (or others) while the event is being emitted; the change takes
    effect on the next emit.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable[..., None]] = []

    def subscribe(self, handler: Callable[..., None]) -> Callable[..., None]:
        """Add handler (once) and return it, so it can be used as a decorator."""
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Callable[..., None]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def __iadd__(self, handler: Callable[..., None]) -> "Event[T]":
        self.subscribe(handler)
        return self

    def __isub__(self, handler: Callable[..., None]) -> "Event[T]":
        self.unsubscribe(handler)
        return self

    def emit(self, *args) -> None:
        """Call every handler with args (zero or one payload value)."""
        for handler in list(self._handlers):
            handler(*args)

    def clear(self) -> None:
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def __bool__(self) -> bool:
        return bool(self._handlers)
