"""Tests for Watcher, create_watcher, autorun and Computed."""

import pytest

from minivue import (
    Computed,
    autorun,
    computed,
    create_watcher,
    flush,
    get_pending_count,
    observe,
    untracked,
)
from minivue._tracking import active_watcher, tracking_depth


class TestCreateWatcher:
    def test_runs_getter_immediately(self):
        state = observe({"a": 1})
        calls = []

        def getter():
            calls.append(1)
            return state["a"] * 2

        w = create_watcher(getter)
        assert calls == [1]
        assert w.value == 2
        assert w.active

    def test_callback_gets_new_and_old_value(self):
        state = observe({"a": 1})
        log = []
        create_watcher(lambda: state["a"], lambda new, old: log.append((old, new)))
        state["a"] = 2
        flush()
        state["a"] = 3
        flush()
        assert log == [(1, 2), (2, 3)]

    def test_rejects_non_callables(self):
        with pytest.raises(TypeError):
            create_watcher(42)
        with pytest.raises(TypeError):
            create_watcher(lambda: None, "not callable")

    def test_first_run_errors_propagate(self):
        with pytest.raises(ZeroDivisionError):
            create_watcher(lambda: 1 / 0)
        assert active_watcher() is None

    def test_tracks_only_what_it_reads(self):
        state = observe({"a": 1, "b": 2})
        w = create_watcher(lambda: state["a"])
        assert len(w.deps) == 1


class TestTrackingReset:
    def test_switching_branches_resubscribes(self):
        state = observe({"flag": True, "a": 1, "b": 2})
        w = create_watcher(lambda: state["a"] if state["flag"] else state["b"])

        state["b"] = 20
        assert get_pending_count() == 0

        state["flag"] = False
        flush()
        assert w.value == 20

        state["a"] = 10
        assert get_pending_count() == 0

        state["b"] = 30
        assert get_pending_count() == 1
        flush()
        assert w.value == 30

    def test_stale_dependency_is_pruned(self):
        state = observe({"flag": True, "a": 1, "b": 2})
        w = create_watcher(lambda: state["a"] if state["flag"] else state["b"])
        state["flag"] = False
        flush()
        assert len(w.deps) == 2  # flag + b, no longer a

    def test_stale_dependency_loses_subscriber(self):
        state = observe({"flag": True, "a": 1, "b": 2})
        create_watcher(lambda: state["a"] if state["flag"] else state["b"])
        a_dep = state._deps["a"]
        assert a_dep.subscriber_count == 1
        state["flag"] = False
        flush()
        assert a_dep.subscriber_count == 0
        assert state._deps["b"].subscriber_count == 1


class TestNestedTracking:
    def test_inner_watcher_does_not_steal_outer_deps(self):
        state = observe({"outer": 1, "inner": 1, "after": 1})
        outer_runs = []
        inner_watchers = []

        def outer_getter():
            outer_runs.append(1)
            value = state["outer"]
            inner_watchers.append(create_watcher(lambda: state["inner"]))
            return value + state["after"]

        outer = create_watcher(outer_getter)
        assert outer.value == 2
        assert tracking_depth() == 0

        state["inner"] = 2
        assert get_pending_count() == 1
        flush()
        assert len(outer_runs) == 1
        assert inner_watchers[0].value == 2

        state["after"] = 5
        flush()
        assert len(outer_runs) == 2
        assert outer.value == 6

    def test_active_watcher_restored_after_inner(self):
        seen = []

        def outer_getter():
            seen.append(active_watcher())
            create_watcher(lambda: seen.append(active_watcher()))
            seen.append(active_watcher())

        outer = create_watcher(outer_getter)
        assert seen[0] is outer
        assert seen[1] is not outer
        assert seen[2] is outer


class TestTeardown:
    def test_stops_reacting(self):
        state = observe({"a": 1})
        log = []
        w = create_watcher(lambda: state["a"], lambda new, old: log.append(new))
        w.teardown()
        state["a"] = 2
        assert get_pending_count() == 0
        assert not w.active
        assert w.deps == frozenset()

    def test_teardown_unsubscribes_from_deps(self):
        state = observe({"a": 1})
        w = create_watcher(lambda: state["a"])
        dep = state._deps["a"]
        assert dep.subscriber_count == 1
        w.teardown()
        assert dep.subscriber_count == 0

    def test_queued_watcher_skipped_after_teardown(self):
        state = observe({"a": 1})
        log = []
        w = create_watcher(lambda: state["a"], lambda new, old: log.append(new))
        state["a"] = 2
        w.teardown()
        assert flush() == 0
        assert log == []


class TestUntracked:
    def test_reads_register_nothing(self):
        state = observe({"a": 1, "b": 2})

        def getter():
            with untracked():
                peek = state["b"]
            return state["a"] + peek

        w = create_watcher(getter)
        state["b"] = 5
        assert get_pending_count() == 0
        state["a"] = 2
        flush()
        assert w.value == 7


class TestAutorun:
    def test_runs_immediately_and_after_flush(self):
        state = observe({"a": 1})
        log = []
        autorun(lambda: log.append(state["a"]))
        assert log == [1]
        state["a"] = 2
        assert log == [1]
        flush()
        assert log == [1, 2]


class TestComputed:
    def test_lazy_eval(self):
        calls = []
        state = observe({"n": 5})

        def fn():
            calls.append(1)
            return state["n"] * 2

        c = Computed(fn)
        assert calls == []
        assert c.get() == 10
        c.get()
        assert len(calls) == 1

    def test_invalidation_marks_dirty_without_queueing(self):
        state = observe({"n": 5})
        c = Computed(lambda: state["n"] * 2)
        c.get()
        state["n"] = 10
        assert c.dirty
        assert get_pending_count() == 0
        assert c.get() == 20

    def test_dependency_switch(self):
        state = observe({"flag": True, "a": 1, "b": 2})
        c = Computed(lambda: state["a"] if state["flag"] else state["b"])
        assert c.get() == 1
        state["flag"] = False
        assert c.get() == 2

    def test_watcher_reading_computed(self):
        state = observe({"n": 1})
        doubled = Computed(lambda: state["n"] * 2)
        w = create_watcher(lambda: doubled.get() + 1)
        assert w.value == 3
        state["n"] = 5
        assert get_pending_count() == 1
        flush()
        assert w.value == 11

    def test_dispose(self):
        state = observe({"n": 5})
        c = Computed(lambda: state["n"] * 2)
        c.get()
        c.dispose()
        state["n"] = 10
        assert c.get() == 20

    def test_decorator(self):
        state = observe({"n": 7})

        @computed
        def doubled():
            return state["n"] * 2

        assert doubled.get() == 14
        state["n"] = 3
        assert doubled.get() == 6
