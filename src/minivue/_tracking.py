"""Dependency tracking context — who is reading right now.

The active watcher is the top of an explicit stack kept in a contextvar.
Each getter run pushes its watcher and pops it when done, so a watcher
created inside another watcher's getter leaves the outer one tracking
exactly where it was.
"""

from __future__ import annotations

import contextvars
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from minivue.watcher import Watcher

# Immutable tuple so a reset token always restores the exact previous stack.
_target_stack: contextvars.ContextVar[tuple[Watcher | None, ...]] = contextvars.ContextVar(
    "target_stack", default=()
)


def active_watcher() -> Watcher | None:
    """The watcher currently collecting dependencies, if any."""
    stack = _target_stack.get()
    return stack[-1] if stack else None


def tracking_depth() -> int:
    return len(_target_stack.get())


@contextmanager
def tracking(watcher: Watcher | None) -> Iterator[None]:
    """Make watcher the active reader for the duration of the block."""
    token = _target_stack.set(_target_stack.get() + (watcher,))
    try:
        yield
    finally:
        _target_stack.reset(token)


def untracked() -> AbstractContextManager[None]:
    """Read observables without registering any dependency.

    Usage:
        with untracked():
            snapshot = state["count"]
    """
    return tracking(None)
