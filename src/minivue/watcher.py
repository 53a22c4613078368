"""Watchers — reactive computations with automatic dependency tracking.

A Watcher runs its getter with itself on top of the tracking stack, so every
reactive slot the getter reads subscribes it. When one of those slots is
written, the watcher is queued with the scheduler and, at flush time, runs
the getter again and hands the new value to its callback.

Each run rebuilds the dependency set from scratch: slots read last time but
not this time are unsubscribed, so a branch the getter stopped taking can no
longer trigger it.

Computed values are lazy watchers: invalidation only marks them dirty, and
the next read re-evaluates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from minivue import _anchor
from minivue._tracking import active_watcher, tracking
from minivue.scheduler import queue_watcher

if TYPE_CHECKING:
    from minivue.dep import Dep

T = TypeVar("T")

Callback = Callable[[object, object], object]


class Watcher:
    """A getter plus a reaction callback, re-run when what it read changes."""

    __slots__ = (
        "id",
        "getter",
        "callback",
        "value",
        "active",
        "lazy",
        "dirty",
        "_deps",
        "_new_deps",
        "__weakref__",
    )

    def __init__(
        self,
        getter: Callable[[], object],
        callback: Callback | None = None,
        *,
        lazy: bool = False,
    ) -> None:
        if not callable(getter):
            raise TypeError(f"watcher getter must be callable, got {type(getter).__name__}")
        if callback is not None and not callable(callback):
            raise TypeError(f"watcher callback must be callable, got {type(callback).__name__}")
        self.id = _anchor.new_id()
        self.getter = getter
        self.callback = callback
        self.active = True
        self.lazy = lazy
        self.dirty = lazy
        self._deps: set[Dep] = set()
        self._new_deps: set[Dep] = set()
        _anchor.watchers[self.id] = self
        self.value = None if lazy else self.get()

    @property
    def deps(self) -> frozenset[Dep]:
        return frozenset(self._deps)

    def get(self) -> object:
        """Run the getter under tracking and swap in the new dependency set."""
        try:
            with tracking(self):
                value = self.getter()
        finally:
            self._cleanup_deps()
        return value

    def add_dep(self, dep: Dep) -> None:
        if dep not in self._new_deps:
            self._new_deps.add(dep)
            if dep not in self._deps:
                dep.add_sub(self)

    def _cleanup_deps(self) -> None:
        for dep in self._deps:
            if dep not in self._new_deps:
                dep.remove_sub(self)
        self._deps, self._new_deps = self._new_deps, self._deps
        self._new_deps.clear()

    def update(self) -> None:
        """Called by a Dep when something this watcher read was written."""
        if self.lazy:
            self.dirty = True
        else:
            queue_watcher(self)

    def run(self) -> None:
        """Called by the scheduler at flush time."""
        if not self.active:
            return
        old_value = self.value
        self.value = self.get()
        if self.callback is not None:
            self.callback(self.value, old_value)

    def evaluate(self) -> None:
        self.value = self.get()
        self.dirty = False

    def depend(self) -> None:
        """Make the active watcher depend on everything this one depends on."""
        for dep in self._deps:
            dep.depend()

    def teardown(self) -> None:
        """Stop this watcher. Disconnects from all dependencies."""
        self.active = False
        for dep in self._deps:
            dep.remove_sub(self)
        self._deps.clear()
        _anchor.watchers.pop(self.id, None)

    def __repr__(self) -> str:
        name = getattr(self.getter, "__name__", type(self.getter).__name__)
        state = "active" if self.active else "torn down"
        return f"Watcher(id={self.id}, {name}, {state})"


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_watcher",)

    def __init__(self, fn: Callable[[], T]) -> None:
        self._watcher = Watcher(fn, lazy=True)

    @property
    def dirty(self) -> bool:
        return self._watcher.dirty

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        watcher = self._watcher
        if watcher.dirty:
            watcher.evaluate()
        if active_watcher() is not None:
            watcher.depend()
        return watcher.value

    def dispose(self) -> None:
        """Disconnect from all dependencies. The next get() starts over."""
        self._watcher.teardown()
        self._watcher.dirty = True
        self._watcher.value = None

    def __repr__(self) -> str:
        watcher = self._watcher
        name = getattr(watcher.getter, "__name__", "fn")
        state = "dirty" if watcher.dirty else f"cached={watcher.value!r}"
        return f"Computed({name}, {state})"


def create_watcher(getter: Callable[[], object], on_invalidate: Callback | None = None) -> Watcher:
    """Register a reactive computation and run its getter once.

    on_invalidate(new_value, old_value) is called from the flush that follows
    any write to something the getter read. Writes never call it directly.

    Usage:
        state = observe({"count": 0})
        w = create_watcher(lambda: state["count"], lambda new, old: print(old, "->", new))
        state["count"] = 1
        flush()  # prints "0 -> 1"
    """
    return Watcher(getter, on_invalidate)


def autorun(fn: Callable[[], object]) -> Watcher:
    """Run fn now, and again at each flush after something it read changed.

    Returns the Watcher (call .teardown() to stop).
    """
    return Watcher(fn)


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        state = observe({"count": 2})

        @computed
        def doubled():
            return state["count"] * 2

        doubled.get()  # 4
    """
    return Computed(fn)
