"""Dependency registry — the set of watchers that read one reactive slot.

Every reactive key of a ReactiveDict, and every ReactiveList as a whole,
owns a Dep. Reading the slot while a watcher is active subscribes that
watcher; writing it hands each subscriber to the scheduler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from minivue import _anchor
from minivue._tracking import active_watcher

if TYPE_CHECKING:
    from minivue.watcher import Watcher


class Dep:
    """Per-slot set of subscribed watchers."""

    __slots__ = ("id", "_subs")

    def __init__(self) -> None:
        self.id = _anchor.new_id()
        self._subs: set[Watcher] = set()

    def add_sub(self, watcher: Watcher) -> None:
        self._subs.add(watcher)

    def remove_sub(self, watcher: Watcher) -> None:
        self._subs.discard(watcher)

    def depend(self) -> None:
        """Register the active watcher, if there is one."""
        watcher = active_watcher()
        if watcher is not None:
            watcher.add_dep(self)

    def notify(self) -> None:
        # Creation order keeps the enqueue order deterministic.
        for watcher in sorted(self._subs, key=lambda w: w.id):
            watcher.update()

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def __repr__(self) -> str:
        return f"Dep(id={self.id}, subs={len(self._subs)})"
