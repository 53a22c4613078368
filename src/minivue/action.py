"""Actions and transactions — explicit flush points.

Wrapping mutations in an @action or `with transaction()` holds every
invalidated watcher in the queue until the outermost scope exits, then
settles the queue synchronously. Use this where the host has no deferred-call
hook (scripts, tests, request handlers) and the end of the entry point is the
natural place to flush.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from minivue.scheduler import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: settle all updates caused by fn once it returns.

    Usage:
        state = observe({"a": 0, "b": 0})

        @action
        def swap():
            state["a"], state["b"] = state["b"], state["a"]
            # watchers run once, after both writes
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return fn(*args, **kwargs)
        finally:
            end_batch()

    return wrapper


@contextmanager
def transaction():
    """Context manager form of @action.

    Usage:
        with transaction():
            state["a"] = 1
            state["b"] = 2
            # watchers run here, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()
