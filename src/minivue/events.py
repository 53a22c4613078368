"""Component event bus — on/off plus upward, downward and two-way propagation.

There is no global registry. Every listener list hangs off a node (its
``_events`` dict, created on first registration) and propagation walks the
tree the node sits in. Any object works as a node as long as it exposes
the tree-shape contract: a ``_parent`` back-reference (or None) and an
iterable ``_children``.

Listeners are called with the emitted args. A truthy return value marks the
event as handled and stops that propagation. Each node's listeners are
walked over a snapshot: an off() during propagation skips listeners not
reached yet and never skips one that is still registered.
Exceptions raised by a listener propagate to the caller and abort the rest
of that propagation.
"""

from __future__ import annotations

import functools
import logging
from typing import Callable, Iterable, Protocol

logger = logging.getLogger("minivue.events")

Listener = Callable[..., object]


class TreeNode(Protocol):
    _parent: TreeNode | None
    _children: Iterable[TreeNode]


def _listeners(node: object, event: str) -> list[Listener] | None:
    events = getattr(node, "_events", None)
    if not events:
        return None
    return events.get(event)


def _call_listeners(listeners: list[Listener] | None, args: tuple) -> bool:
    if not listeners:
        return False
    for listener in list(listeners):
        # Removed by an earlier listener in this same pass.
        if not any(registered is listener for registered in listeners):
            continue
        if listener(*args):
            return True
    return False


def on(node: object, event: str, listener: Listener) -> None:
    """Register listener for event on node. Re-registering the same callable is a no-op."""
    if not isinstance(event, str) or not callable(listener):
        raise TypeError("event has to be a string and event handler has to be callable")
    events = getattr(node, "_events", None)
    if events is None:
        events = {}
        node._events = events
    listeners = events.setdefault(event, [])
    if not any(registered is listener for registered in listeners):
        listeners.append(listener)


def off(node: object, event: str, listener: Listener) -> None:
    """Remove listener for event. Unknown events and listeners are ignored."""
    listeners = _listeners(node, event)
    if listeners:
        for i, registered in enumerate(listeners):
            if registered is listener:
                del listeners[i]
                return
    logger.debug("off(%r): listener %r not registered", event, listener)


def dispatch(node: TreeNode | None, event: str, *args: object) -> bool:
    """Propagate upward: node itself, then each ancestor up to the root.

    Returns True if a listener handled the event (and so stopped it).
    """
    while node is not None:
        if _call_listeners(_listeners(node, event), args):
            return True
        node = node._parent
    return False


def broadcast(node: TreeNode, event: str, *args: object) -> bool:
    """Propagate downward through node's descendants in pre-order.

    A child's listeners run before its own children are visited. A truthy
    return stops the whole broadcast, not only the current branch.
    Returns True if a listener handled the event.
    """
    for child in list(node._children or ()):
        if _call_listeners(_listeners(child, event), args):
            return True
        if broadcast(child, event, *args):
            return True
    return False


def emit(node: TreeNode, event: str, *args: object) -> None:
    """dispatch() from node, then broadcast() to its descendants.

    The two directions short-circuit independently.
    """
    dispatch(node, event, *args)
    broadcast(node, event, *args)


def attach_events(node: object) -> object:
    """Bind on/off/emit/dispatch/broadcast as methods of an arbitrary node.

    The node must already satisfy the tree-shape contract. Returns node.

    Usage:
        node = SimpleNamespace(_parent=None, _children=[])
        attach_events(node)
        node.on("saved", handler)
        node.emit("saved", record)
    """
    if not hasattr(node, "_parent") or not hasattr(node, "_children"):
        raise TypeError(
            f"{type(node).__name__} needs _parent and _children before events can be attached"
        )
    for fn in (on, off, emit, dispatch, broadcast):
        setattr(node, fn.__name__, functools.partial(fn, node))
    return node
