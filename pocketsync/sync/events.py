"""Events published while a sync pass applies changes."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger("pocketsync.sync.events")

DEFAULT_HISTORY_LIMIT = 100


class EventKind(str, Enum):
    IMPORTED = "imported"
    EXPORTED = "exported"
    DELETED = "deleted"


@dataclass(frozen=True)
class SyncEvent:
    """A path that was imported, exported or deleted during a pass."""

    kind: EventKind
    path: str
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        compare=False,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "path": self.path, "timestamp": self.timestamp}


Subscriber = Callable[[SyncEvent], None]


class EventStream:
    """Fan-out of sync events to observers.

    Observers are informational; one raising does not stop delivery to the
    others or affect the pass that emitted the event.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._lock = threading.Lock()
        self._subscribers: List[Subscriber] = []
        self._history: Deque[SyncEvent] = deque(maxlen=max(history_limit, 0))

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(subscriber)

        def _unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return _unsubscribe

    def emit(self, event: SyncEvent) -> None:
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)
        logger.debug("sync event %s %s", event.kind.value, event.path)
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception("Sync event subscriber failed on %s", event.path)

    @property
    def history(self) -> List[SyncEvent]:
        with self._lock:
            return list(self._history)


__all__ = ["EventKind", "SyncEvent", "EventStream", "DEFAULT_HISTORY_LIMIT"]
