"""Listener registration for the events the sync coordinator emits."""

import logging
from collections import defaultdict, deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List

log = logging.getLogger(__name__)


class SyncEvent(str, Enum):
    TIMER_CHANGED = "timer_changed"      # payload: TimeEntry | None
    SUMMARY_UPDATED = "summary_updated"  # payload: SummaryReport
    STATUS_TEXT = "status_text"          # payload: str
    NOTICE = "notice"                    # payload: str


class EventBus:
    def __init__(self):
        self._listeners: Dict[SyncEvent, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: SyncEvent, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._listeners[event].append(callback)

        def unsubscribe():
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        return unsubscribe

    def emit(self, event: SyncEvent, payload: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(payload)
            except Exception as e:
                log.error(f"Listener for {event.value} failed: {e}", exc_info=True)


class RecentNotices:
    """Bounded buffer of user-facing notices, newest last."""

    def __init__(self, maxlen: int = 20):
        self._notices: Deque[str] = deque(maxlen=maxlen)

    def append(self, notice: str) -> None:
        self._notices.append(notice)

    def list(self) -> List[str]:
        return list(self._notices)
