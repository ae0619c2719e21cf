"""ReactiveMap — copy-on-write keyed container with fine-grained change events.

The current state is a snapshot: a mapping that is never mutated once
installed. Every mutation builds a new mapping from the old one, installs it
in the underlying Observable (one coarse notification carrying the whole
snapshot), then fires entry events describing exactly what differed:

    added(key, value)
    updated(key, new_value, old_value)
    removed(key, old_value)

Ordering: the coarse notification, and with it any bound container's sync,
always runs before the fine-grained events of the same call.

Values compare by identity, except primitives (bool, int, float, complex,
str, bytes), which compare by value within one class: int and float are one
numeric class, so 1 and 1.0 are the same value, but True and 1 are not.
No deep equality.

Precondition violations, none of which are detected at runtime:
- binding two containers to each other recurses without bound;
- an observer that unconditionally mutates the container it observes
  recurses without bound;
- mutating a snapshot obtained from peek(), an observer, or passed to sync().
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Callable, Generic, Iterable, TypeVar

from cowstate.channel import EventChannel
from cowstate.disposable import DisposableGroup
from cowstate.exceptions import DisposedError
from cowstate.observable import Disposer, Observable

logger = logging.getLogger("cowstate.reactive_map")

K = TypeVar("K")
V = TypeVar("V")

_MISSING = object()
_PRIMITIVES = frozenset({bool, int, float, complex, str, bytes})
# int and float form one numeric class; bool stays apart.
_NUMBERS = frozenset({int, float})


def same_value(a: object, b: object) -> bool:
    """Identity for composites, value equality for primitives of one class."""
    if a is b:
        return True
    ta, tb = type(a), type(b)
    if ta in _NUMBERS and tb in _NUMBERS:
        return a == b
    return ta is tb and ta in _PRIMITIVES and a == b


def _next_index(snapshot: Mapping) -> int:
    """1-based index one past the contiguous run of integer keys 1..n."""
    n = 0
    while n + 1 in snapshot:
        n += 1
    return n + 1


def _require_mapping(value: object, what: str) -> None:
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(value).__name__}")


class ReactiveMap(Generic[K, V]):
    """Immutable-snapshot keyed container with added/updated/removed events."""

    __slots__ = ("_name", "_group", "_state", "_on_added", "_on_updated", "_on_removed")

    def __init__(self, initial: Mapping[K, V] | None = None, *, name: str | None = None) -> None:
        if initial is not None:
            _require_mapping(initial, "initial snapshot")
        self._name = name
        self._group = DisposableGroup()
        self._state: Observable[Mapping[K, V]] = self._group.add(
            Observable(initial if initial is not None else {})
        )
        self._on_added = self._group.add(EventChannel())
        self._on_updated = self._group.add(EventChannel())
        self._on_removed = self._group.add(EventChannel())

    def _check(self) -> None:
        if self._group.disposed:
            raise DisposedError(repr(self))

    # --- Mutations ---

    def set(self, key: K, value: V) -> None:
        """Set key to value. Fires added or updated; no-op if value is unchanged."""
        self._check()
        old_snapshot = self._state.get()
        old_value = old_snapshot.get(key, _MISSING)
        if same_value(old_value, value):
            return

        new_snapshot = dict(old_snapshot)
        new_snapshot[key] = value
        self._state.set(new_snapshot)

        if old_value is _MISSING:
            self._on_added.fire(key, value)
        else:
            self._on_updated.fire(key, value, old_value)

    def remove(self, key: K) -> None:
        """Remove key. Fires removed; no-op if key is absent."""
        self._check()
        old_snapshot = self._state.get()
        if key not in old_snapshot:
            return

        old_value = old_snapshot[key]
        new_snapshot = dict(old_snapshot)
        del new_snapshot[key]
        self._state.set(new_snapshot)

        self._on_removed.fire(key, old_value)

    def insert(self, value: V) -> int:
        """Append value array-style and return its 1-based index."""
        self._check()
        old_snapshot = self._state.get()
        index = _next_index(old_snapshot)
        new_snapshot = dict(old_snapshot)
        new_snapshot[index] = value
        self._state.set(new_snapshot)

        self._on_added.fire(index, value)
        return index

    def clear(self) -> None:
        """Remove every entry. Fires removed per entry in prior iteration order."""
        self._check()
        old_snapshot = self._state.get()
        if not old_snapshot:
            return

        self._state.set({})

        for key, old_value in old_snapshot.items():
            self._on_removed.fire(key, old_value)

    def reconcile(self, partial: Mapping[K, V]) -> None:
        """Merge partial into the snapshot. Adds and updates, never removes."""
        self._check()
        _require_mapping(partial, "reconcile argument")
        old_snapshot = self._state.get()
        new_snapshot = dict(old_snapshot)

        changes = []
        for key, value in partial.items():
            old_value = new_snapshot.get(key, _MISSING)
            if not same_value(old_value, value):
                new_snapshot[key] = value
                changes.append((key, value, old_value))

        if not changes:
            return
        self._state.set(new_snapshot)

        self._fire_changes(changes)

    def sync(self, full: Mapping[K, V]) -> None:
        """Make full the new snapshot, firing events for every difference.

        full is adopted by reference; the caller must not mutate it afterwards.
        Only the identical object short-circuits: an equal but distinct mapping
        is installed and diffed (firing nothing if every value is the same).
        """
        self._check()
        _require_mapping(full, "sync argument")
        old_snapshot = self._state.get()
        if old_snapshot is full:
            return

        self._state.set(full)

        changes = []
        for key, value in full.items():
            old_value = old_snapshot.get(key, _MISSING)
            if not same_value(old_value, value):
                changes.append((key, value, old_value))
        self._fire_changes(changes)

        for key, old_value in old_snapshot.items():
            if key not in full:
                self._on_removed.fire(key, old_value)

    def _fire_changes(self, changes: Iterable[tuple]) -> None:
        for key, value, old_value in changes:
            if old_value is _MISSING:
                self._on_added.fire(key, value)
            else:
                self._on_updated.fire(key, value, old_value)

    def bind(self, source: ReactiveMap[K, V]) -> Disposer:
        """Continuously mirror source into this container.

        Syncs once now, then on every snapshot source installs. Returns the
        disposer that stops mirroring; the caller owns it. Manual mutations on
        this container stay legal but are overwritten by the next upstream
        change. Destroying either side does not release the binding.
        """
        if not isinstance(source, ReactiveMap):
            raise TypeError(f"bind expects a ReactiveMap, got {type(source).__name__}")
        self._check()
        source._check()

        self.sync(source.peek())
        release = source._state.subscribe(self.sync)
        logger.debug("%r bound to %r", self, source)

        def _unbind() -> None:
            release()
            logger.debug("%r unbound from %r", self, source)

        return _unbind

    # --- Queries ---

    def get(self, key: K, default: V | None = None) -> V | None:
        self._check()
        return self._state.get().get(key, default)

    def peek(self) -> Mapping[K, V]:
        """The current snapshot, by reference. Read-only."""
        self._check()
        return self._state.get()

    @property
    def state(self) -> Observable[Mapping[K, V]]:
        """The underlying Observable holding the snapshot."""
        self._check()
        return self._state

    def get_state(self) -> Observable[Mapping[K, V]]:
        return self.state

    def __len__(self) -> int:
        return len(self.peek())

    def __contains__(self, key: object) -> bool:
        return key in self.peek()

    # --- Observation ---

    def observe(
        self, callback: Callable[[Mapping[K, V]], None], call_immediately: bool = False
    ) -> Disposer:
        """Subscribe to every snapshot change. Returns a disposer."""
        self._check()
        return self._state.subscribe(callback, call_immediately)

    def observe_entry_added(self, callback: Callable[[K, V], None]) -> Disposer:
        self._check()
        return self._on_added.subscribe(callback)

    def observe_entry_updated(self, callback: Callable[[K, V, V], None]) -> Disposer:
        self._check()
        return self._on_updated.subscribe(callback)

    def observe_entry_removed(self, callback: Callable[[K, V], None]) -> Disposer:
        self._check()
        return self._on_removed.subscribe(callback)

    # --- Lifecycle ---

    @property
    def destroyed(self) -> bool:
        return self._group.disposed

    def destroy(self) -> None:
        """Release the cell and all three channels. Safe to call twice."""
        if self._group.disposed:
            return
        logger.debug("Destroying %r", self)
        self._group.dispose_all()

    dispose = destroy

    def __enter__(self) -> ReactiveMap[K, V]:
        return self

    def __exit__(self, *exc_info) -> None:
        self.destroy()

    def __repr__(self) -> str:
        label = f"{self._name!r}, " if self._name else ""
        if self._group.disposed:
            return f"ReactiveMap({label}<destroyed>)"
        return f"ReactiveMap({label}{dict(self._state.get())!r})"
