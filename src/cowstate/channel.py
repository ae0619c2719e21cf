"""Event channel — synchronous, in-order fan-out of positional arguments.

A ReactiveMap owns three of these (entry added, updated, removed).
"""

from __future__ import annotations

from typing import Callable

from cowstate.exceptions import DisposedError

Disposer = Callable[[], None]


class EventChannel:
    """Push-based channel: fire(*args) calls every subscriber in order."""

    __slots__ = ("_subscribers", "_disposed")

    def __init__(self) -> None:
        self._subscribers: list[Callable[..., None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def fire(self, *args) -> None:
        """Push args to all current subscribers."""
        if self._disposed:
            raise DisposedError("EventChannel")
        for cb in list(self._subscribers):
            cb(*args)

    def subscribe(self, callback: Callable[..., None]) -> Disposer:
        """Register a callback. Returns a function that removes it."""
        if self._disposed:
            raise DisposedError("EventChannel")
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def dispose(self) -> None:
        self._disposed = True
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._subscribers)} subscribers"
        return f"EventChannel({state})"
