# File: app/offline/notifications.py
# Project: citycare-backend

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable

from app.schemas.offline import SyncNotification

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50


def sync_message(count: int) -> str:
    return f"{count} Report{'s' if count != 1 else ''} Uploaded."


class SyncNotifier:
    """Fan-out for drain summaries; the UI polls the recent buffer."""

    def __init__(self, limit: int = RECENT_LIMIT):
        self._listeners: list[Callable[[SyncNotification], None]] = []
        self._recent: deque[SyncNotification] = deque(maxlen=limit)

    def subscribe(self, listener: Callable[[SyncNotification], None]) -> None:
        self._listeners.append(listener)

    def emit(self, count: int) -> SyncNotification:
        event = SyncNotification(count=count, message=sync_message(count), at=datetime.now(timezone.utc))
        self._recent.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # a broken toast layer must not undo a finished drain
                logger.error("Sync notification listener failed", exc_info=True)
        return event

    def recent(self) -> list[SyncNotification]:
        """Newest first."""
        return list(reversed(self._recent))
