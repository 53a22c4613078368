"""Textual host adapter for minivue. Opt-in — requires textual.

use_app() makes the app's message loop the flush hook: invalidated watchers
run right after the message currently being handled, via ``app.call_next``.
watch() guards callbacks that touch widgets: they are skipped while the app
is not running or the widget tree is being replaced, and NoMatches from
widget queries is swallowed.
"""

import logging
from contextlib import contextmanager

from textual.css.query import NoMatches

from minivue.scheduler import set_scheduler
from minivue.watcher import Watcher

logger = logging.getLogger("minivue.textual")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


def use_app(app) -> None:
    """Flush pending watchers after the app's current message."""
    set_scheduler(app.call_next)


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def watch(app, getter, callback) -> Watcher:
    """Watcher whose callback safely updates Textual widgets.

    The getter always runs, so dependencies stay current even while the
    callback is being skipped.
    """

    def _guarded(new_value, old_value):
        if not is_safe(app):
            return
        try:
            callback(new_value, old_value)
        except NoMatches:
            logger.debug("watch callback skipped: widget not mounted")

    return Watcher(getter, _guarded)
