"""Observable cell — one value plus an ordered list of subscribers.

set() replaces the value and calls every subscriber synchronously, in the
order they subscribed. There is no batching and no scheduling: by the time
set() returns, every subscriber has run.

Change detection is by identity only. Setting an equal-but-distinct object
counts as a change; setting the identical object is a no-op.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from cowstate.exceptions import DisposedError

T = TypeVar("T")

Disposer = Callable[[], None]

_RELEASED = object()


class Observable(Generic[T]):
    """A single observable value with synchronous, ordered notification."""

    __slots__ = ("_value", "_subscribers", "_disposed")

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check(self) -> None:
        if self._disposed:
            raise DisposedError("Observable")

    def get(self) -> T:
        self._check()
        return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify subscribers, unless it is the same object."""
        self._check()
        if self._value is value:
            return
        self._value = value
        # Snapshot the list — callbacks may subscribe or unsubscribe.
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[T], None], call_immediately: bool = False) -> Disposer:
        """Register a callback. Returns a function that removes it.

        With call_immediately, callback runs once with the current value
        before subscribe() returns. If that first call raises, the callback
        is not left subscribed.
        """
        self._check()
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed, or cell disposed

        if call_immediately:
            try:
                callback(self._value)
            except BaseException:
                _unsubscribe()
                raise
        return _unsubscribe

    def dispose(self) -> None:
        """Drop the value and every subscriber. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        self._value = _RELEASED
        self._subscribers.clear()

    def __repr__(self) -> str:
        if self._disposed:
            return "Observable(<disposed>)"
        return f"Observable({self._value!r})"
