# File: app/offline/manager.py
# Project: citycare-backend

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Callable, Optional

from app.offline.connectivity import ConnectivityController
from app.offline.notifications import SyncNotifier
from app.offline.queue_store import PersistentQueueStore
from app.offline.storage import StorageError
from app.schemas.offline import QueuedReport
from app.schemas.report import ReportCreate, ReportOut
from app.services.reports import RemoteError, ReportRepository

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 15.0


class QueueState(PyEnum):
    idle = "idle"
    draining = "draining"


class ConnectivityLost(Exception):
    """Raised inside a drain when the flag flips to offline during a create-call."""


def new_local_id() -> str:
    return f"offline-{uuid.uuid4().hex}"


class OfflineQueueManager:
    """
    Stages reports captured while offline and flushes them to the report
    repository when connectivity comes back.

    Drains are single-flight: a drain requested while one is running returns
    an empty list. Each drain works on one snapshot of the queue, submits the
    entries one at a time in enqueue order, and removes the accepted entries
    in a single write once the loop ends. Entries whose create-call fails stay
    queued for the next drain.
    """

    def __init__(
        self,
        store: PersistentQueueStore,
        connectivity: ConnectivityController,
        repository: ReportRepository,
        notifier: Optional[SyncNotifier] = None,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        on_synced: Optional[Callable[[QueuedReport, ReportOut], None]] = None,
    ):
        self._store = store
        self._connectivity = connectivity
        self._repository = repository
        self._notifier = notifier or SyncNotifier()
        self._call_timeout = call_timeout
        self._on_synced = on_synced
        self._drain_task: Optional[asyncio.Task] = None
        self.state = QueueState.idle
        connectivity.on_reconnect(self.schedule_drain)

    @property
    def connectivity(self) -> ConnectivityController:
        return self._connectivity

    @property
    def notifier(self) -> SyncNotifier:
        return self._notifier

    @property
    def is_draining(self) -> bool:
        return self.state is QueueState.draining

    def pending(self) -> list[QueuedReport]:
        """Snapshot copy of the queue for readers such as a queue-length badge."""
        return list(self._store.load())

    def enqueue(self, draft: ReportCreate, user_id: Optional[int] = None) -> QueuedReport:
        report = QueuedReport(
            id=new_local_id(),
            title=draft.title,
            category=draft.category,
            description=draft.description,
            priority=draft.priority,
            coordinates=draft.coordinates,
            image_url=draft.image_url,
            created_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        self._store.append(report)
        logger.info("Queued offline report %s (%s)", report.id, report.title)
        return report

    def schedule_drain(self) -> Optional[asyncio.Task]:
        """Start a drain on the running loop; used as the reconnect hook."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, drain deferred to the next sync request")
            return None
        self._drain_task = loop.create_task(self.drain())
        return self._drain_task

    async def drain(self) -> list[ReportOut]:
        if self._connectivity.is_offline:
            return []
        if self.state is QueueState.draining:
            logger.debug("Drain already running, ignoring request")
            return []

        self.state = QueueState.draining
        try:
            snapshot = self._store.load()
            if not snapshot:
                return []
            logger.info("Draining %d offline report(s)", len(snapshot))

            created: list[ReportOut] = []
            synced_ids: list[str] = []
            for entry in snapshot:
                if self._connectivity.is_offline:
                    logger.info("Went offline during drain, %d report(s) left queued",
                                len(snapshot) - len(synced_ids))
                    break
                try:
                    report = await self._create_while_online(entry)
                except ConnectivityLost:
                    logger.info("Went offline while submitting %s, leaving it queued", entry.id)
                    break
                except RemoteError as e:
                    logger.warning("Could not sync offline report %s, keeping it queued: %s", entry.id, e)
                    continue
                except Exception:
                    logger.error("Unexpected failure syncing offline report %s, keeping it queued",
                                 entry.id, exc_info=True)
                    continue
                created.append(report)
                synced_ids.append(entry.id)
                if self._on_synced is not None:
                    try:
                        self._on_synced(entry, report)
                    except Exception:
                        logger.error("on_synced hook failed for %s", entry.id, exc_info=True)

            if synced_ids:
                try:
                    self._store.remove(synced_ids)
                except StorageError:
                    # entries stay queued; resubmission is deduplicated by client_ref
                    logger.error("Could not clear %d synced report(s) from the offline queue",
                                 len(synced_ids), exc_info=True)
            if created:
                self._notifier.emit(len(created))
            logger.info("Drain finished: %d synced, %d failed or skipped",
                        len(created), len(snapshot) - len(created))
            return created
        finally:
            self.state = QueueState.idle

    async def _create_while_online(self, entry: QueuedReport) -> ReportOut:
        call = asyncio.ensure_future(asyncio.wait_for(
            asyncio.to_thread(self._repository.create, entry.to_draft(), entry.user_id, entry.id),
            timeout=self._call_timeout,
        ))
        lost = asyncio.ensure_future(self._connectivity.wait_offline())
        try:
            done, _ = await asyncio.wait({call, lost}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            lost.cancel()
        if call not in done:
            call.cancel()
            raise ConnectivityLost(entry.id)
        try:
            return call.result()
        except asyncio.TimeoutError as e:
            raise RemoteError(f"Timed out after {self._call_timeout}s", e) from e
