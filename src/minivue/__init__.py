"""minivue: a small reactive-UI runtime core for Python.

Observable dicts and lists, dependency-tracking watchers, a batched update
scheduler, and a component tree with an event bus.
"""

from importlib.metadata import version as _version

__version__ = _version("minivue")

from minivue.errors import ReactivityError, WatcherError, UpdateLoopError, TreeError
from minivue.observable import (
    Reactive,
    ReactiveDict,
    ReactiveList,
    observe,
    set_reactive,
    delete_reactive,
    is_reactive,
    to_raw,
)
from minivue.watcher import Watcher, Computed, computed, create_watcher, autorun
from minivue.scheduler import flush, settle, set_scheduler, get_pending_count
from minivue.action import action, transaction
from minivue._tracking import untracked
from minivue.events import attach_events
from minivue.component import ComponentNode
# textual NOT auto-imported — opt-in only

__all__ = [
    "Reactive",
    "ReactiveDict",
    "ReactiveList",
    "observe",
    "set_reactive",
    "delete_reactive",
    "is_reactive",
    "to_raw",
    "Watcher",
    "Computed",
    "computed",
    "create_watcher",
    "autorun",
    "flush",
    "settle",
    "set_scheduler",
    "get_pending_count",
    "action",
    "transaction",
    "untracked",
    "attach_events",
    "ComponentNode",
    "ReactivityError",
    "WatcherError",
    "UpdateLoopError",
    "TreeError",
]
