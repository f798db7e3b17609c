# File: app/routers/offline.py
from fastapi import APIRouter, Depends, HTTPException

from app.core.security import get_current_user
from app.models.user import User, UserRole
from app.offline.manager import OfflineQueueManager
from app.offline.runtime import get_offline_manager
from app.offline.storage import StorageError
from app.schemas.offline import (
    ConnectivityIn,
    ConnectivityOut,
    DrainResult,
    QueuedReport,
    SyncNotification,
)
from app.schemas.report import ReportCreate

router = APIRouter(prefix="/offline", tags=["offline"])


def _connectivity_out(manager: OfflineQueueManager, draining: bool = False) -> ConnectivityOut:
    return ConnectivityOut(
        offline=manager.connectivity.is_offline,
        draining=draining or manager.is_draining,
        queued=len(manager.pending()),
    )


@router.get("/connectivity", response_model=ConnectivityOut)
async def get_connectivity(manager: OfflineQueueManager = Depends(get_offline_manager)):
    return _connectivity_out(manager)


@router.put("/connectivity", response_model=ConnectivityOut)
async def set_connectivity(
    body: ConnectivityIn,
    user: User = Depends(get_current_user),
    manager: OfflineQueueManager = Depends(get_offline_manager),
):
    # coming back online starts a drain in the background; progress shows up
    # in /offline/notifications
    task = manager.connectivity.set_state(body.offline)
    return _connectivity_out(manager, draining=task is not None)


@router.get("/queue", response_model=list[QueuedReport])
async def list_queue(
    user: User = Depends(get_current_user),
    manager: OfflineQueueManager = Depends(get_offline_manager),
):
    queued = manager.pending()
    if user.role == UserRole.admin:
        return queued
    return [q for q in queued if q.user_id == user.id]


@router.post("/queue", response_model=QueuedReport, status_code=201)
async def enqueue_report(
    body: ReportCreate,
    user: User = Depends(get_current_user),
    manager: OfflineQueueManager = Depends(get_offline_manager),
):
    try:
        return manager.enqueue(body, user_id=user.id)
    except StorageError:
        raise HTTPException(status_code=503, detail="Offline queue unavailable, please try again")


@router.post("/sync", response_model=DrainResult)
async def sync_now(
    user: User = Depends(get_current_user),
    manager: OfflineQueueManager = Depends(get_offline_manager),
):
    synced = await manager.drain()
    return DrainResult(synced=synced, remaining=len(manager.pending()))


@router.get("/notifications", response_model=list[SyncNotification])
async def recent_notifications(manager: OfflineQueueManager = Depends(get_offline_manager)):
    return manager.notifier.recent()
