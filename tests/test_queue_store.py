"""Persistent queue store: ordering, layout and degraded reads."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.offline.queue_store import OFFLINE_QUEUE_KEY, PersistentQueueStore
from app.offline.storage import MemoryStorage, StorageError
from app.schemas.offline import QueuedReport


def _queued(n: int) -> QueuedReport:
    return QueuedReport(
        id=f"offline-{n}",
        title=f"Pothole on street {n}",
        category="Pothole",
        description="Deep hole near the crossing",
        priority="High",
        coordinates={"lat": 45.81, "lng": 15.98},
        image_url=None,
        created_at=datetime(2025, 3, 1, 12, n, tzinfo=timezone.utc),
    )


class BrokenStorage:
    def get(self, key):
        raise StorageError("disk unavailable")

    def set(self, key, value):
        raise StorageError("disk unavailable")

    def remove(self, key):
        raise StorageError("disk unavailable")


def test_load_returns_entries_in_enqueue_order() -> None:
    store = PersistentQueueStore(MemoryStorage())
    for n in range(5):
        store.append(_queued(n))

    assert [r.id for r in store.load()] == [f"offline-{n}" for n in range(5)]


def test_queue_survives_a_new_store_over_the_same_storage() -> None:
    storage = MemoryStorage()
    PersistentQueueStore(storage).append(_queued(1))

    reloaded = PersistentQueueStore(storage).load()
    assert reloaded == [_queued(1)]


def test_queue_is_persisted_as_camel_case_json_array() -> None:
    storage = MemoryStorage()
    PersistentQueueStore(storage).append(_queued(2))

    payload = json.loads(storage.get(OFFLINE_QUEUE_KEY))
    assert isinstance(payload, list)
    assert payload[0]["id"] == "offline-2"
    assert payload[0]["coordinates"] == {"lat": 45.81, "lng": 15.98}
    assert "imageUrl" in payload[0]
    assert payload[0]["createdAt"].startswith("2025-03-01T12:02")


def test_remove_drops_only_the_given_ids() -> None:
    store = PersistentQueueStore(MemoryStorage())
    for n in range(3):
        store.append(_queued(n))

    store.remove(["offline-0", "offline-2"])

    assert [r.id for r in store.load()] == ["offline-1"]


def test_clear_empties_the_queue() -> None:
    storage = MemoryStorage()
    store = PersistentQueueStore(storage)
    store.append(_queued(1))

    store.clear()

    assert store.load() == []
    assert storage.get(OFFLINE_QUEUE_KEY) is None


@pytest.mark.parametrize("raw", ["{not json", '{"id": "offline-1"}', '[{"id": "offline-1"}]'])
def test_corrupted_queue_loads_as_empty(raw: str, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    store = PersistentQueueStore(MemoryStorage({OFFLINE_QUEUE_KEY: raw}))

    assert store.load() == []
    assert "corrupted" in caplog.text


def test_unavailable_storage_loads_as_empty_but_append_raises() -> None:
    store = PersistentQueueStore(BrokenStorage())

    assert store.load() == []
    with pytest.raises(StorageError):
        store.append(_queued(1))


def test_queued_report_is_immutable() -> None:
    report = _queued(1)
    with pytest.raises(ValidationError):
        report.title = "changed"


class FlakyReadStorage(MemoryStorage):
    """Reads fail while ``fail_reads`` is set; writes always succeed."""

    fail_reads = False

    def get(self, key):
        if self.fail_reads:
            raise StorageError("read timed out")
        return super().get(key)


def test_write_after_failed_read_keeps_existing_entries() -> None:
    storage = FlakyReadStorage()
    store = PersistentQueueStore(storage)
    store.append(_queued(1))
    store.append(_queued(2))

    storage.fail_reads = True
    with pytest.raises(StorageError):
        store.append(_queued(3))
    with pytest.raises(StorageError):
        store.remove(["offline-1"])
    storage.fail_reads = False

    assert [r.id for r in store.load()] == ["offline-1", "offline-2"]
