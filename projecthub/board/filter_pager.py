"""
Search and pagination over the working order.

``filter_projects`` is the pure filter. ``DelayedTransition`` is the
debounce timer: each ``schedule`` supersedes the pending one, and the
callback fires once, after the delay, with the latest value.
``FilterPager`` combines both with a growable visibility window.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from projecthub.board.records import field

logger = logging.getLogger(__name__)

INITIAL_WINDOW = 12
WINDOW_INCREMENT = 12
DEBOUNCE_SECONDS = 0.3


def matches(project, query: str) -> bool:
    """Case-insensitive substring match on name and overview."""
    needle = query.strip().lower()
    if not needle:
        return True
    name = field(project, "name") or ""
    if needle in name.lower():
        return True
    overview = field(project, "overview")
    return bool(overview) and needle in overview.lower()


def filter_projects(order, query: str | None) -> tuple:
    """Filter the full working order; a blank query keeps everything."""
    if not query or not query.strip():
        return tuple(order)
    return tuple(p for p in order if matches(p, query))


_NOTHING = object()


class DelayedTransition:
    """Fires ``callback(value)`` once after ``delay`` seconds of quiescence.

    Must be used from a running event loop. ``schedule`` cancels any pending
    timer before arming a new one.
    """

    def __init__(self, delay: float, callback: Callable[[object], None]):
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._value = _NOTHING

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, value) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._value = value
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._value = _NOTHING

    def flush(self) -> bool:
        """Fire the pending value now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        value = self._value
        self._handle = None
        self._value = _NOTHING
        if value is not _NOTHING:
            self.callback(value)


class FilterPager:
    """Query state, debounced filtering and the visible-count window."""

    def __init__(
        self,
        initial_window: int = INITIAL_WINDOW,
        increment: int = WINDOW_INCREMENT,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        on_change: Callable[[], None] | None = None,
    ):
        self.initial_window = initial_window
        self.increment = increment
        self.query = ""
        self.effective_query = ""
        self.visible_count = initial_window
        self._total: int | None = None
        self._on_change = on_change
        self._debounce = DelayedTransition(debounce_seconds, self._apply_query)

    def set_query(self, text: str) -> None:
        """Update the visible query now; filter after the debounce delay.

        Outside an event loop the query applies immediately.
        """
        self.query = text or ""
        try:
            self._debounce.schedule(self.query)
        except RuntimeError:
            self._apply_query(self.query)

    def apply_query_now(self) -> None:
        if not self._debounce.flush():
            self._apply_query(self.query)

    def _apply_query(self, text) -> None:
        if text == self.effective_query:
            return
        self.effective_query = text
        logger.debug("Search applied: %r", text)
        if self._on_change is not None:
            self._on_change()

    def sync_total(self, total: int) -> None:
        """Reset the window when the working order length changes."""
        if self._total is not None and total != self._total:
            self.visible_count = self.initial_window
        self._total = total

    def load_more(self, filtered_len: int) -> int:
        """Grow the window by one increment, clamped to ``filtered_len``."""
        grown = min(self.visible_count + self.increment, filtered_len)
        self.visible_count = max(self.visible_count, grown)
        return self.visible_count

    def filtered(self, order) -> tuple:
        return filter_projects(order, self.effective_query)

    def visible(self, order) -> tuple:
        return self.filtered(order)[: self.visible_count]

    def has_more(self, order) -> bool:
        return len(self.filtered(order)) > self.visible_count

    def close(self) -> None:
        self._debounce.cancel()
