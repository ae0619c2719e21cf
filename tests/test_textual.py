"""Tests for cowstate.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from cowstate import ReactiveMap
from cowstate import textual as ctx


class _MockApp:
    """Minimal mock matching the Textual App interface ctx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestObserve:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        m = ReactiveMap()
        snapshots = []
        ctx.observe(app, m, snapshots.append)
        m.set("a", 1)
        assert snapshots == []

    def test_skips_during_pause(self):
        app = _MockApp()
        m = ReactiveMap()
        snapshots = []
        ctx.observe(app, m, snapshots.append)
        with ctx.pause(app):
            m.set("a", 1)
        assert snapshots == []

    def test_fires_when_safe(self):
        app = _MockApp()
        m = ReactiveMap()
        snapshots = []
        ctx.observe(app, m, snapshots.append)
        m.set("a", 1)
        assert snapshots == [{"a": 1}]

    def test_call_immediately(self):
        app = _MockApp()
        m = ReactiveMap({"a": 1})
        snapshots = []
        ctx.observe(app, m, snapshots.append, call_immediately=True)
        assert snapshots == [{"a": 1}]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        m = ReactiveMap()

        def _raise_nomatch(snapshot):
            raise NoMatches("InventoryTable")

        unsub = ctx.observe(app, m, _raise_nomatch)
        m.set("a", 1)  # should not raise
        unsub()

    def test_propagates_real_errors(self):
        app = _MockApp()
        m = ReactiveMap()

        def _raise_value_error(snapshot):
            raise ValueError("boom")

        ctx.observe(app, m, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            m.set("a", 1)

    def test_thread_marshal(self):
        """Changes from a background thread use call_from_thread."""
        app = _MockApp()
        m = ReactiveMap()
        snapshots = []
        ctx.observe(app, m, snapshots.append)

        def _bg():
            m.set("a", 1)

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert snapshots == [{"a": 1}]
        assert len(app._call_from_thread_log) == 1


class TestObserveEntries:
    def test_routes_each_event(self):
        app = _MockApp()
        m = ReactiveMap({"a": 1})
        log = []
        ctx.observe_entries(
            app,
            m,
            on_added=lambda k, v: log.append(("added", k, v)),
            on_updated=lambda k, new, old: log.append(("updated", k, new, old)),
            on_removed=lambda k, old: log.append(("removed", k, old)),
        )
        m.set("b", 2)
        m.set("a", 10)
        m.remove("b")
        assert log == [("added", "b", 2), ("updated", "a", 10, 1), ("removed", "b", 2)]

    def test_only_given_callbacks(self):
        app = _MockApp()
        m = ReactiveMap()
        log = []
        ctx.observe_entries(app, m, on_removed=lambda k, old: log.append(k))
        m.set("a", 1)
        m.remove("a")
        assert log == ["a"]

    def test_single_disposer_releases_all(self):
        app = _MockApp()
        m = ReactiveMap()
        log = []
        dispose = ctx.observe_entries(
            app,
            m,
            on_added=lambda k, v: log.append("added"),
            on_removed=lambda k, old: log.append("removed"),
        )
        dispose()
        m.set("a", 1)
        m.remove("a")
        assert log == []
        dispose()  # idempotent

    def test_skips_during_pause(self):
        app = _MockApp()
        m = ReactiveMap()
        log = []
        ctx.observe_entries(app, m, on_added=lambda k, v: log.append(k))
        with ctx.pause(app):
            m.set("a", 1)
        m.set("b", 2)
        assert log == ["b"]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert ctx.is_safe(app)

        with pytest.raises(RuntimeError):
            with ctx.pause(app):
                assert not ctx.is_safe(app)
                raise RuntimeError("oops")

        assert ctx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with ctx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with ctx.pause(app_a):
            assert not ctx.is_safe(app_a)
            assert ctx.is_safe(app_b)
