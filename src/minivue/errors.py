"""Exception types raised by the reactive runtime."""

from __future__ import annotations


class ReactivityError(Exception):
    """Base class for minivue runtime errors."""


class WatcherError(ReactivityError):
    """A watcher's getter or callback raised during a flush.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, watcher, message: str | None = None):
        self.watcher = watcher
        super().__init__(message or f"{watcher!r} failed during flush")


class UpdateLoopError(ReactivityError):
    """Watchers kept re-queueing each other past the cycle limit."""

    def __init__(self, cycles: int, pending: int):
        self.cycles = cycles
        self.pending = pending
        super().__init__(
            f"update loop: still {pending} pending watcher(s) after {cycles} flush cycles"
        )


class TreeError(ReactivityError, ValueError):
    """An edit would break single ownership or acyclicity of the node tree."""
