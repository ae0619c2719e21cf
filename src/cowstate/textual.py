"""Textual integration for cowstate. Opt-in — requires textual.

Optional and UI-only: this is a convenience layer for Textual apps, not
part of the container contract. Nothing in the core imports it, and the
core behaves identically whether or not it is installed.

Guard, NoMatches handling and thread marshaling are enforced here, not at
callsites. Textual coupling stays in this module; the core is UI-agnostic.
Pause state has a single owner (this module): an id is present in
_paused_apps exactly while inside a pause() context.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from cowstate.disposable import DisposableGroup

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn):
    """Wrap fn so it skips while unsafe, marshals to the subscribing thread,
    and swallows NoMatches from widget queries."""
    _main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            pass

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def observe(app, table, callback, *, call_immediately=False):
    """table.observe() that safely bridges snapshot changes to Textual widgets."""
    return table.observe(_guard(app, callback), call_immediately)


def observe_entries(app, table, *, on_added=None, on_updated=None, on_removed=None):
    """Bridge fine-grained entry events to Textual widgets.

    Subscribes only the callbacks given. Returns one disposer that releases
    every subscription made here.
    """
    group = DisposableGroup()
    if on_added is not None:
        group.add(table.observe_entry_added(_guard(app, on_added)))
    if on_updated is not None:
        group.add(table.observe_entry_updated(_guard(app, on_updated)))
    if on_removed is not None:
        group.add(table.observe_entry_removed(_guard(app, on_removed)))
    return group.dispose_all
