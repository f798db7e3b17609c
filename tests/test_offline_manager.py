"""Offline queue manager: enqueue, drain scenarios and single-flight behaviour."""
from __future__ import annotations

import asyncio
import threading
import time
import uuid
from typing import Optional

import pytest

from app.models.report import ReportStatus
from app.offline.connectivity import ConnectivityController
from app.offline.manager import OfflineQueueManager, QueueState
from app.offline.notifications import SyncNotifier
from app.offline.queue_store import PersistentQueueStore
from app.offline.storage import MemoryStorage, StorageError
from app.schemas.report import ReportCreate, ReportOut
from app.services.reports import RemoteError
from app.services.supabase_reports import SupabaseReportRepository


class FakeRepository:
    """Accepts every create except titles listed in ``reject``."""

    def __init__(self, reject: tuple[str, ...] = ()):
        self.reject = set(reject)
        self.created: list[ReportOut] = []

    def create(self, draft: ReportCreate, owner_id: Optional[int] = None,
               client_ref: Optional[str] = None) -> ReportOut:
        if draft.title in self.reject:
            raise RemoteError("backend rejected report")
        report = ReportOut(
            id=str(uuid.uuid4()),
            title=draft.title,
            category=draft.category,
            description=draft.description,
            status=ReportStatus.pending,
            priority=draft.priority,
            coordinates=draft.coordinates,
            image_url=draft.image_url,
            user_id=owner_id,
            client_ref=client_ref,
        )
        self.created.append(report)
        return report


class BlockingRepository(FakeRepository):
    """Blocks inside create until released, so tests can act mid-drain."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def create(self, draft, owner_id=None, client_ref=None):
        self.started.set()
        self.release.wait(5)
        return super().create(draft, owner_id, client_ref)


def _draft(title: str) -> ReportCreate:
    return ReportCreate(
        title=title,
        category="Lighting",
        description="Street light is out",
        priority="Medium",
        coordinates={"lat": 43.51, "lng": 16.44},
    )


def _build(repository, storage=None, call_timeout: float = 5.0):
    storage = storage if storage is not None else MemoryStorage()
    connectivity = ConnectivityController(storage)
    notifier = SyncNotifier()
    events = []
    notifier.subscribe(events.append)
    manager = OfflineQueueManager(
        PersistentQueueStore(storage), connectivity, repository,
        notifier=notifier, call_timeout=call_timeout,
    )
    return manager, connectivity, events


def test_enqueue_assigns_local_id_and_timestamp_without_calling_backend() -> None:
    repo = FakeRepository()
    manager, connectivity, _ = _build(repo)
    connectivity.set_state(True)

    queued = manager.enqueue(_draft("Dark corner"), user_id=7)

    assert queued.id.startswith("offline-")
    assert queued.created_at is not None
    assert queued.user_id == 7
    assert manager.pending() == [queued]
    assert repo.created == []


def test_enqueue_keeps_fifo_order() -> None:
    manager, connectivity, _ = _build(FakeRepository())
    connectivity.set_state(True)

    titles = [f"Report number {n}" for n in range(6)]
    for title in titles:
        manager.enqueue(_draft(title))

    assert [r.title for r in manager.pending()] == titles


def test_enqueue_propagates_storage_error() -> None:
    class FullStorage(MemoryStorage):
        def set(self, key, value):
            raise StorageError("quota exceeded")

    manager, _, _ = _build(FakeRepository(), storage=FullStorage())

    with pytest.raises(StorageError):
        manager.enqueue(_draft("Fallen tree"))


def test_all_accepted_empties_queue_and_notifies_once() -> None:
    repo = FakeRepository()
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    queued = [manager.enqueue(_draft(f"Broken lamp {n}")) for n in range(3)]

    async def scenario():
        return await connectivity.set_state(False)

    synced = asyncio.run(scenario())

    assert [r.title for r in synced] == [q.title for q in queued]
    assert [r.client_ref for r in synced] == [q.id for q in queued]
    assert manager.pending() == []
    assert len(events) == 1
    assert events[0].count == 3
    assert events[0].message == "3 Reports Uploaded."


def test_failed_entry_stays_queued_and_batch_continues() -> None:
    repo = FakeRepository(reject=("Second report",))
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    manager.enqueue(_draft("First report"))
    second = manager.enqueue(_draft("Second report"))

    async def scenario():
        return await connectivity.set_state(False)

    synced = asyncio.run(scenario())

    assert [r.title for r in synced] == ["First report"]
    assert manager.pending() == [second]
    assert [e.count for e in events] == [1]


def test_going_offline_mid_call_leaves_entry_queued() -> None:
    repo = BlockingRepository()
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    queued = manager.enqueue(_draft("Leaking hydrant"))

    async def scenario():
        task = connectivity.set_state(False)
        await asyncio.to_thread(repo.started.wait, 5)
        connectivity.set_state(True)
        try:
            return await task
        finally:
            repo.release.set()

    synced = asyncio.run(scenario())

    assert synced == []
    assert manager.pending() == [queued]
    assert events == []
    assert manager.state is QueueState.idle


def test_drain_while_offline_is_a_noop() -> None:
    repo = FakeRepository()
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    queued = manager.enqueue(_draft("Graffiti on wall"))

    assert asyncio.run(manager.drain()) == []
    assert manager.pending() == [queued]
    assert repo.created == []
    assert events == []


def test_unreachable_backend_leaves_queue_unchanged() -> None:
    repo = FakeRepository(reject=("One", "Two", "Three"))
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    for title in ("One", "Two", "Three"):
        manager.enqueue(_draft(title))
    before = manager.pending()

    async def scenario():
        return await connectivity.set_state(False)

    assert asyncio.run(scenario()) == []
    assert manager.pending() == before
    assert events == []


def test_timeout_counts_as_remote_error() -> None:
    class SlowRepository(FakeRepository):
        def create(self, draft, owner_id=None, client_ref=None):
            time.sleep(0.5)
            return super().create(draft, owner_id, client_ref)

    manager, connectivity, _ = _build(SlowRepository(), call_timeout=0.05)
    connectivity.set_state(True)
    queued = manager.enqueue(_draft("Overflowing bin"))

    async def scenario():
        return await connectivity.set_state(False)

    assert asyncio.run(scenario()) == []
    assert manager.pending() == [queued]


def test_second_drain_during_running_drain_returns_empty() -> None:
    repo = BlockingRepository()
    manager, connectivity, _ = _build(repo)
    connectivity.set_state(True)
    manager.enqueue(_draft("Cracked pavement"))

    async def scenario():
        first = connectivity.set_state(False)
        await asyncio.to_thread(repo.started.wait, 5)
        assert manager.is_draining
        second = await manager.drain()
        repo.release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert len(first) == 1
    assert second == []
    assert len(repo.created) == 1


def test_rapid_toggling_never_creates_the_same_entry_twice() -> None:
    repo = FakeRepository()
    manager, connectivity, _ = _build(repo)
    connectivity.set_state(True)
    for n in range(2):
        manager.enqueue(_draft(f"Toggle report {n}"))

    async def scenario():
        first = connectivity.set_state(False)
        connectivity.set_state(True)
        second = connectivity.set_state(False)
        return await asyncio.gather(first, second)

    results = asyncio.run(scenario())

    refs = [r.client_ref for batch in results for r in batch]
    assert len(refs) == len(set(refs)) == 2
    assert len(repo.created) == 2
    assert manager.pending() == []


def test_entries_enqueued_during_drain_wait_for_next_drain() -> None:
    repo = BlockingRepository()
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    manager.enqueue(_draft("Before the drain"))

    async def scenario():
        task = connectivity.set_state(False)
        await asyncio.to_thread(repo.started.wait, 5)
        late = manager.enqueue(_draft("During the drain"))
        repo.release.set()
        return await task, late

    synced, late = asyncio.run(scenario())

    assert [r.title for r in synced] == ["Before the drain"]
    assert manager.pending() == [late]
    assert [e.count for e in events] == [1]


def test_on_synced_hook_sees_each_uploaded_entry() -> None:
    seen = []
    storage = MemoryStorage()
    connectivity = ConnectivityController(storage)
    manager = OfflineQueueManager(
        PersistentQueueStore(storage), connectivity, FakeRepository(),
        on_synced=lambda entry, report: seen.append((entry.id, report.client_ref)),
    )
    connectivity.set_state(True)
    queued = manager.enqueue(_draft("Hook report"))

    async def scenario():
        return await connectivity.set_state(False)

    asyncio.run(scenario())

    assert seen == [(queued.id, queued.id)]


def test_unexpected_repository_failure_is_isolated_to_its_entry() -> None:
    class ExplodingRepository(FakeRepository):
        def create(self, draft, owner_id=None, client_ref=None):
            if draft.title == "Second one":
                raise KeyError("status")
            return super().create(draft, owner_id, client_ref)

    repo = ExplodingRepository()
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    for title in ("First one", "Second one", "Third one"):
        manager.enqueue(_draft(title))

    async def scenario():
        return await connectivity.set_state(False)

    synced = asyncio.run(scenario())

    assert [r.title for r in synced] == ["First one", "Third one"]
    assert [r.title for r in manager.pending()] == ["Second one"]
    assert [e.count for e in events] == [2]


def test_malformed_backend_row_does_not_abort_the_drain() -> None:
    class RowSession:
        def __init__(self):
            self.calls = 0

        def request(self, method, url, **kwargs):
            self.calls += 1
            row = {
                "id": f"row-{self.calls}",
                "title": kwargs["json"]["title"],
                "category": "Lighting",
                "status": "Closed" if kwargs["json"]["title"] == "Second one" else "Pending",
                "lat": 43.51,
                "lng": 16.44,
                "client_ref": kwargs["json"]["client_ref"],
            }
            return StubRowResponse([row])

    class StubRowResponse:
        status_code = 201
        content = b"[...]"

        def __init__(self, payload):
            self._payload = payload

        def json(self):
            return self._payload

    session = RowSession()
    repo = SupabaseReportRepository("https://city.supabase.co", "service-key", session=session)
    manager, connectivity, events = _build(repo)
    connectivity.set_state(True)
    for title in ("First one", "Second one", "Third one"):
        manager.enqueue(_draft(title))

    async def scenario():
        return await connectivity.set_state(False)

    synced = asyncio.run(scenario())

    assert [r.title for r in synced] == ["First one", "Third one"]
    assert [r.title for r in manager.pending()] == ["Second one"]
    assert [e.count for e in events] == [2]
    assert session.calls == 3
