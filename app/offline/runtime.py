# File: app/offline/runtime.py
# Project: citycare-backend
# Wiring for the offline subsystem: built once per process, read from app.state.

import logging

from fastapi import Request

from app.core.config import Settings
from app.db.session import SessionLocal
from app.models.audit_log import AuditAction, AuditCategory
from app.offline.connectivity import ConnectivityController
from app.offline.manager import OfflineQueueManager
from app.offline.notifications import SyncNotifier
from app.offline.queue_store import PersistentQueueStore
from app.offline.storage import KeyValueStorage, MemoryStorage, SqlKeyValueStorage
from app.schemas.offline import QueuedReport
from app.schemas.report import ReportOut
from app.services.audit import log_activity_safe
from app.services.reports import ReportRepository, SqlReportRepository
from app.services.supabase_reports import SupabaseReportRepository

logger = logging.getLogger(__name__)


def build_report_repository(settings: Settings) -> ReportRepository:
    if settings.report_backend.lower() == "supabase":
        if not (settings.supabase_url and settings.supabase_service_role):
            raise RuntimeError("REPORT_BACKEND=supabase needs SUPABASE_URL and SUPABASE_SERVICE_ROLE")
        logger.info("Reports stored in hosted backend at %s", settings.supabase_url)
        return SupabaseReportRepository(settings.supabase_url, settings.supabase_service_role)
    return SqlReportRepository(SessionLocal)


def build_storage(settings: Settings) -> KeyValueStorage:
    if settings.offline_storage.lower() == "memory":
        logger.warning("Offline queue kept in memory; queued reports are lost on restart")
        return MemoryStorage()
    return SqlKeyValueStorage(SessionLocal)


def _audit_synced(entry: QueuedReport, report: ReportOut) -> None:
    log_activity_safe(
        SessionLocal,
        AuditAction.system_report,
        "system",
        report.id,
        report.title,
        f"Uploaded from offline queue entry {entry.id}",
        AuditCategory.system,
    )


def build_offline_manager(settings: Settings, repository: ReportRepository) -> OfflineQueueManager:
    storage = build_storage(settings)
    connectivity = ConnectivityController(storage)
    return OfflineQueueManager(
        PersistentQueueStore(storage),
        connectivity,
        repository,
        notifier=SyncNotifier(),
        call_timeout=settings.offline_sync_timeout_seconds,
        on_synced=_audit_synced,
    )


def get_report_repository(request: Request) -> ReportRepository:
    return request.app.state.report_repository


def get_offline_manager(request: Request) -> OfflineQueueManager:
    return request.app.state.offline_manager
