"""Update scheduler — coalesces invalidated watchers into one deferred flush.

Writes never run watchers inline. An invalidated watcher's id is queued
(once per cycle) and a single flush is requested from the host's
"run after the current turn" hook. The flush snapshots the queue, clears it,
and runs each watcher once in first-enqueued order. Anything queued while a
flush is running waits for the next cycle.

Hook resolution: the hook installed with set_scheduler(), else call_soon of
the running asyncio loop, else nothing; the owed flush then waits for an
explicit flush() or settle() call.

Batching: inside an @action or `with transaction()` no hook is requested;
the outermost scope settles the queue synchronously when it exits.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from minivue import _anchor
from minivue.errors import UpdateLoopError, WatcherError

if TYPE_CHECKING:
    from minivue.watcher import Watcher

logger = logging.getLogger("minivue.scheduler")

# Consecutive flush cycles that may leave work behind before we call it a loop.
max_update_cycles: int = 100

_scheduler: Callable[[Callable[[], object]], object] | None = None

_queue: list[int] = []
_has: set[int] = set()
_waiting: bool = False
_flushing: bool = False
_cycles: int = 0
_batch_depth: int = 0


def set_scheduler(scheduler: Callable[[Callable[[], object]], object] | None) -> None:
    """Install the host's deferred-call primitive.

    The hook receives the flush callable and must run it after the current
    synchronous work unwinds, e.g. ``loop.call_soon`` or Textual's
    ``app.call_next``. Pass None to go back to auto-detection.
    """
    global _scheduler
    _scheduler = scheduler


def _resolve_hook() -> Callable[[Callable[[], object]], object] | None:
    if _scheduler is not None:
        return _scheduler
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return None
    return loop.call_soon


def queue_watcher(watcher: Watcher) -> None:
    """Queue watcher for the next flush, requesting one if none is owed."""
    if watcher.id in _has:
        return
    _has.add(watcher.id)
    _queue.append(watcher.id)

    if _batch_depth == 0:
        _request_flush()


def _request_flush() -> None:
    global _waiting
    if _waiting:
        return
    _waiting = True
    hook = _resolve_hook()
    if hook is not None:
        hook(flush)


def flush() -> int:
    """Run one flush cycle. Returns the number of watchers run."""
    global _waiting, _flushing, _cycles
    if _flushing:
        return 0

    _waiting = False
    batch = list(_queue)
    _queue.clear()
    _has.clear()
    if not batch:
        _cycles = 0
        return 0

    logger.debug("flush: %d watcher(s)", len(batch))
    _flushing = True
    ran = 0
    try:
        for index, watcher_id in enumerate(batch):
            watcher = _anchor.watchers.get(watcher_id)
            if watcher is None or not watcher.active:
                continue
            try:
                watcher.run()
            except Exception as exc:
                _flushing = False
                _requeue(batch[index + 1:])
                raise WatcherError(watcher) from exc
            ran += 1
    finally:
        _flushing = False

    if _queue:
        _cycles += 1
        if _cycles >= max_update_cycles:
            pending = len(_queue)
            cycles = _cycles
            _clear()
            logger.error("update loop aborted after %d cycles, %d pending", cycles, pending)
            raise UpdateLoopError(cycles, pending)
        _request_flush()
    else:
        _cycles = 0
    return ran


def settle() -> int:
    """Flush until nothing is pending. Returns the total watchers run."""
    total = 0
    while _queue and not _flushing:
        total += flush()
    return total


def _requeue(watcher_ids: list[int]) -> None:
    for watcher_id in watcher_ids:
        watcher = _anchor.watchers.get(watcher_id)
        if watcher is not None and watcher.active:
            queue_watcher(watcher)


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. The outermost exit settles the queue."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        settle()


def is_pending() -> bool:
    """True while a flush is owed and has not run yet."""
    return _waiting or bool(_queue)


def get_pending_count() -> int:
    """Number of watchers waiting to run. Useful for testing."""
    return len(_queue)


def _clear() -> None:
    global _waiting, _flushing, _cycles
    _queue.clear()
    _has.clear()
    _waiting = False
    _flushing = False
    _cycles = 0


def reset() -> None:
    """Drop all queued work and settings. Meant for test isolation."""
    global _batch_depth, _scheduler, max_update_cycles
    _clear()
    _batch_depth = 0
    _scheduler = None
    max_update_cycles = 100
