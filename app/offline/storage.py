# File: app/offline/storage.py
# Project: citycare-backend

import logging
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Local persistence is unavailable or holds unreadable data."""


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; lost on restart."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStorage:
    """Key/value rows in the ``kv_entries`` table, one short session per call."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db = self._session_factory()
        try:
            row = db.get(KeyValueEntry, key)
            return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read {key!r}") from e
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(KeyValueEntry, key)
            if row:
                row.value = value
            else:
                db.add(KeyValueEntry(key=key, value=value))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"failed to write {key!r}") from e
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(KeyValueEntry, key)
            if row:
                db.delete(row)
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"failed to remove {key!r}") from e
        finally:
            db.close()
