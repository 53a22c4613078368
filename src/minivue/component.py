"""Component node tree — ownership, reactive data and the event bus per node.

A parent owns its children (a plain list); a child only keeps a weak
reference back to its parent, so the tree has no ownership cycle. Each node
owns the watchers it created with watch() and tears them down on destroy().
"""

from __future__ import annotations

import logging
import weakref
from typing import Callable, Iterator

from minivue import _anchor, events
from minivue.errors import TreeError
from minivue.observable import ReactiveDict, observe
from minivue.watcher import Callback, Watcher

logger = logging.getLogger("minivue.component")


class ComponentNode:
    """A node of the component tree.

    Usage:
        app = ComponentNode("app")
        form = ComponentNode("form", data={"dirty": False}, parent=app)

        app.on("saved", lambda record: print("saved", record))
        form.dispatch("saved", {"id": 1})
    """

    def __init__(
        self,
        name: str | None = None,
        data: dict | None = None,
        parent: ComponentNode | None = None,
    ) -> None:
        self._id = _anchor.new_id()
        self.name = name or f"node-{self._id}"
        self._events: dict[str, list[events.Listener]] | None = None
        self._parent_ref: weakref.ref[ComponentNode] | None = None
        self._children: list[ComponentNode] = []
        self._watchers: list[Watcher] = []
        self._destroyed = False
        self.data: ReactiveDict = observe(data if data is not None else {})
        if parent is not None:
            parent.add_child(self)

    # --- Tree shape ---

    @property
    def _parent(self) -> ComponentNode | None:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def parent(self) -> ComponentNode | None:
        return self._parent

    @property
    def children(self) -> tuple[ComponentNode, ...]:
        return tuple(self._children)

    @property
    def root(self) -> ComponentNode:
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def ancestors(self) -> Iterator[ComponentNode]:
        node = self._parent
        while node is not None:
            yield node
            node = node._parent

    def add_child(self, child: ComponentNode) -> ComponentNode:
        if child is self:
            raise TreeError(f"{self.name} cannot be its own child")
        if child._parent is not None:
            raise TreeError(f"{child.name} already belongs to {child._parent.name}")
        if any(ancestor is child for ancestor in self.ancestors()):
            raise TreeError(f"{child.name} is an ancestor of {self.name}")
        if self._destroyed or child._destroyed:
            raise TreeError("cannot attach destroyed nodes")
        self._children.append(child)
        child._parent_ref = weakref.ref(self)
        logger.debug("attached %s to %s", child.name, self.name)
        return child

    def remove_child(self, child: ComponentNode) -> None:
        for i, existing in enumerate(self._children):
            if existing is child:
                del self._children[i]
                child._parent_ref = None
                logger.debug("detached %s from %s", child.name, self.name)
                return
        raise TreeError(f"{child.name} is not a child of {self.name}")

    def detach(self) -> None:
        parent = self._parent
        if parent is not None:
            parent.remove_child(self)

    # --- Reactivity ---

    def watch(self, getter: Callable[[], object], callback: Callback | None = None) -> Watcher:
        """Create a watcher owned by this node. It is torn down with the node."""
        if self._destroyed:
            raise TreeError(f"{self.name} is destroyed")
        watcher = Watcher(getter, callback)
        self._watchers.append(watcher)
        return watcher

    def destroy(self) -> None:
        """Destroy children, tear down watchers, drop listeners and tree edges."""
        if self._destroyed:
            return
        for child in list(self._children):
            child.destroy()
        for watcher in self._watchers:
            watcher.teardown()
        self._watchers.clear()
        self.detach()
        self._children.clear()
        self._events = None
        self._destroyed = True
        logger.debug("destroyed %s", self.name)

    # --- Event bus ---

    def on(self, event: str, listener: events.Listener) -> None:
        events.on(self, event, listener)

    def off(self, event: str, listener: events.Listener) -> None:
        events.off(self, event, listener)

    def emit(self, event: str, *args: object) -> None:
        events.emit(self, event, *args)

    def dispatch(self, event: str, *args: object) -> bool:
        return events.dispatch(self, event, *args)

    def broadcast(self, event: str, *args: object) -> bool:
        return events.broadcast(self, event, *args)

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._children)} children"
        return f"ComponentNode({self.name!r}, {state})"
