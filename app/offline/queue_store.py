# File: app/offline/queue_store.py
# Project: citycare-backend

import json
import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from app.offline.storage import KeyValueStorage, StorageError
from app.schemas.offline import QueuedReport

logger = logging.getLogger(__name__)

OFFLINE_QUEUE_KEY = "offline_queue"


class PersistentQueueStore:
    """
    Ordered list of QueuedReport kept under one storage key as a JSON array.

    Array order is enqueue order. A queue that cannot be read or parsed is
    treated as empty by load(): the app stays usable and the loss is logged.
    Writes read the stored queue directly and fail with StorageError instead,
    so an unreadable medium never gets overwritten with a partial queue.
    """

    def __init__(self, storage: KeyValueStorage, key: str = OFFLINE_QUEUE_KEY):
        self._storage = storage
        self._key = key

    def load(self) -> list[QueuedReport]:
        try:
            raw = self._storage.get(self._key)
        except StorageError:
            logger.error("Offline queue storage unavailable, treating queue as empty", exc_info=True)
            return []
        return self._parse(raw)

    def append(self, report: QueuedReport) -> None:
        self._write(self._parse(self._storage.get(self._key)) + [report])

    def remove(self, ids: Iterable[str]) -> None:
        drop = set(ids)
        if not drop:
            return
        current = self._parse(self._storage.get(self._key))
        self._write([r for r in current if r.id not in drop])

    def clear(self) -> None:
        self._storage.remove(self._key)

    def _parse(self, raw: Optional[str]) -> list[QueuedReport]:
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("offline queue is not a JSON array")
            return [QueuedReport.model_validate(item) for item in items]
        except (ValueError, TypeError, ValidationError):
            logger.warning("Offline queue is corrupted, treating it as empty", exc_info=True)
            return []

    def _write(self, reports: list[QueuedReport]) -> None:
        payload = [r.model_dump(mode="json", by_alias=True) for r in reports]
        self._storage.set(self._key, json.dumps(payload))
