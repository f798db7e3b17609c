# File: app/offline/connectivity.py
# Project: citycare-backend

import asyncio
import logging
from typing import Any, Callable, Optional

from app.offline.storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

OFFLINE_MODE_KEY = "offline_mode"


class ConnectivityController:
    """
    Single source of truth for "are we offline".

    The flag is toggled explicitly (no network probing) and persisted as
    "true"/"false". Going from offline to online calls the reconnect hook
    once; the hook's return value (usually the drain task) is handed back
    to the caller of set_state.
    """

    def __init__(self, storage: KeyValueStorage, key: str = OFFLINE_MODE_KEY):
        self._storage = storage
        self._key = key
        self._on_reconnect: Optional[Callable[[], Any]] = None
        self._offline = self._read()
        self._offline_event = asyncio.Event()
        if self._offline:
            self._offline_event.set()

    def _read(self) -> bool:
        try:
            return self._storage.get(self._key) == "true"
        except StorageError:
            logger.error("Could not read connectivity flag, assuming online", exc_info=True)
            return False

    def on_reconnect(self, hook: Callable[[], Any]) -> None:
        self._on_reconnect = hook

    @property
    def is_offline(self) -> bool:
        return self._offline

    def get_state(self) -> bool:
        return self._offline

    def set_state(self, offline: bool) -> Any:
        was_offline = self._offline
        self._offline = offline
        try:
            self._storage.set(self._key, "true" if offline else "false")
        except StorageError:
            logger.error("Could not persist connectivity flag", exc_info=True)

        if offline:
            self._offline_event.set()
        else:
            self._offline_event.clear()

        if was_offline == offline:
            return None
        logger.info("Connectivity changed: %s", "offline" if offline else "online")
        if was_offline and not offline and self._on_reconnect is not None:
            return self._on_reconnect()
        return None

    def toggle(self) -> Any:
        return self.set_state(not self._offline)

    async def wait_offline(self) -> None:
        await self._offline_event.wait()
