"""Data anchor — plain Python structures shared by the reactive modules.

Holds the id counter plus the two identity registries the runtime needs:
the wrapper for each raw container and the live watcher for each queued id.
Both are weak so neither keeps anything alive on its own.
"""

import itertools
import weakref

# id(raw container) -> its reactive wrapper
wrappers: "weakref.WeakValueDictionary[int, object]" = weakref.WeakValueDictionary()

# watcher id -> watcher, looked up by the scheduler at flush time
watchers: "weakref.WeakValueDictionary[int, object]" = weakref.WeakValueDictionary()

# ID generation — shared by deps, watchers and component nodes
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)
