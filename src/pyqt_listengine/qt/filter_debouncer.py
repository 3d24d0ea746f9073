"""Debounced text filter for search fields."""

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QTimer

from ..adapters.list_adapter import ListAdapter
from ..core.item import Matcher

logger = logging.getLogger(__name__)


class DebouncedTextFilter:
    """
    Replaces the active text query of a ListAdapter after a trailing delay.

    Restarts the timer on each call; the filter only changes after delay_ms of
    inactivity. The previous query is reset before the new one is applied, and
    an empty text only resets.

    Usage:
        self._text_filter = DebouncedTextFilter(adapter, delay_ms=200)
        search_edit.textChanged.connect(self._text_filter.trigger)
    """

    def __init__(self,
                 adapter: ListAdapter,
                 delay_ms: int = 200,
                 flags: int = 0,
                 matcher: Optional[Matcher] = None,
                 on_applied: Optional[Callable[[str], None]] = None):
        self._adapter = adapter
        self._delay_ms = delay_ms
        self._flags = flags
        self._matcher = matcher
        self._on_applied = on_applied
        self._pending: Optional[str] = None
        self._active: Optional[str] = None
        self._timer: Optional[QTimer] = None

    @property
    def active_query(self) -> Optional[str]:
        return self._active

    @property
    def pending_query(self) -> Optional[str]:
        return self._pending

    def trigger(self, text: str):
        """Schedule ``text`` as the new query, restarting the timer."""
        self._pending = text
        if self._timer is not None:
            self._timer.stop()

        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._apply_pending)
        self._timer.start(self._delay_ms)

    def cancel(self):
        """Cancel the pending query."""
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        self._pending = None

    def force(self):
        """Cancel the timer and apply the pending query immediately."""
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        self._apply_pending()

    def _apply_pending(self):
        if self._pending is None:
            return
        text, self._pending = self._pending, None
        if text == self._active:
            return

        filtering = self._adapter.filtering
        with self._adapter.collection.batch():
            if self._active is not None:
                filtering.reset_filter(self._active, self._flags)
            self._active = text or None
            if text:
                filtering.apply_filter(text, self._flags, self._matcher)
        logger.debug(f"Text filter changed to {text!r}")

        if self._on_applied is not None:
            self._on_applied(text)
