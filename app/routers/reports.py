# File: app/routers/reports.py
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.ratelimit import limiter
from app.core.security import get_current_user, require_role
from app.db.session import get_db
from app.models.audit_log import AuditAction, AuditCategory
from app.models.user import User
from app.offline.manager import OfflineQueueManager
from app.offline.runtime import get_offline_manager, get_report_repository
from app.offline.storage import StorageError
from app.schemas.report import (
    ReportCreate,
    ReportOut,
    ReportUpdate,
    StatusChangeRequested,
    UpvotedReportsOut,
)
from app.services.audit import log_activity, actor_label
from app.services.reports import AlreadyUpvoted, RemoteError, ReportNotFound, ReportRepository

router = APIRouter(prefix="/reports", tags=["reports"])


def _http_error(e: RemoteError) -> HTTPException:
    if isinstance(e, ReportNotFound):
        return HTTPException(status_code=404, detail="Report not found")
    if isinstance(e, AlreadyUpvoted):
        return HTTPException(status_code=409, detail="You have already upvoted this report")
    return HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=list[ReportOut])
def list_reports(repo: ReportRepository = Depends(get_report_repository)):
    try:
        return repo.list()
    except RemoteError as e:
        raise _http_error(e)


@router.get("/upvoted", response_model=UpvotedReportsOut)
def my_upvotes(
    user: User = Depends(get_current_user),
    repo: ReportRepository = Depends(get_report_repository),
):
    try:
        return UpvotedReportsOut(report_ids=repo.upvoted_by(user.id))
    except RemoteError as e:
        raise _http_error(e)


@router.get("/{report_id}", response_model=ReportOut)
def get_report(report_id: str, repo: ReportRepository = Depends(get_report_repository)):
    try:
        return repo.get(report_id)
    except RemoteError as e:
        raise _http_error(e)


@router.post("", response_model=ReportOut, status_code=201)
@limiter.limit("10/minute")
def create_report(
    request: Request,
    body: ReportCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    repo: ReportRepository = Depends(get_report_repository),
    manager: OfflineQueueManager = Depends(get_offline_manager),
):
    # while offline the report is staged locally and uploaded on reconnect
    if manager.connectivity.is_offline:
        try:
            queued = manager.enqueue(body, user_id=user.id)
        except StorageError:
            raise HTTPException(status_code=503, detail="Offline queue unavailable, please try again")
        return JSONResponse(status_code=202, content=queued.model_dump(mode="json", by_alias=True))

    try:
        report = repo.create(body, owner_id=user.id)
    except RemoteError as e:
        raise _http_error(e)
    log_activity(db, AuditAction.reported, actor_label(user), report.id, report.title,
                 f"New {report.category.value} report", AuditCategory.user_submission)
    return report


@router.patch("/{report_id}", response_model=ReportOut)
def update_report(
    report_id: str,
    body: ReportUpdate,
    admin: User = Depends(require_role("admin")),
    db: Session = Depends(get_db),
    repo: ReportRepository = Depends(get_report_repository),
):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        before = repo.get(report_id)
        report = repo.update(report_id, fields)
    except RemoteError as e:
        raise _http_error(e)

    if "status" in fields and fields["status"] is not None and fields["status"] != before.status:
        log_activity(db, AuditAction.status_change, actor_label(admin), report.id, report.title,
                     f"Status changed from {before.status.value} to {report.status.value}",
                     AuditCategory.admin_action)
    changed = sorted(k for k in fields if k != "status")
    if changed:
        log_activity(db, AuditAction.edited_report, actor_label(admin), report.id, report.title,
                     f"Edited {', '.join(changed)}", AuditCategory.admin_action)
    return report


@router.patch("/{report_id}/status", response_model=ReportOut)
def change_status(
    report_id: str,
    body: StatusChangeRequested,
    admin: User = Depends(require_role("admin")),
    db: Session = Depends(get_db),
    repo: ReportRepository = Depends(get_report_repository),
):
    try:
        before = repo.get(report_id)
        report = repo.update(report_id, {"status": body.status})
    except RemoteError as e:
        raise _http_error(e)
    if before.status != report.status:
        log_activity(db, AuditAction.status_change, actor_label(admin), report.id, report.title,
                     f"Status changed from {before.status.value} to {report.status.value}",
                     AuditCategory.admin_action)
    return report


@router.delete("/{report_id}")
def delete_report(
    report_id: str,
    admin: User = Depends(require_role("admin")),
    db: Session = Depends(get_db),
    repo: ReportRepository = Depends(get_report_repository),
):
    try:
        report = repo.get(report_id)
        repo.delete(report_id)
    except RemoteError as e:
        raise _http_error(e)
    log_activity(db, AuditAction.deleted, actor_label(admin), report.id, report.title,
                 "Report deleted", AuditCategory.admin_action)
    return {"ok": True}


@router.post("/{report_id}/upvote", response_model=ReportOut)
@limiter.limit("30/minute")
def upvote_report(
    request: Request,
    report_id: str,
    user: User = Depends(get_current_user),
    repo: ReportRepository = Depends(get_report_repository),
):
    try:
        return repo.upvote(report_id, user.id)
    except RemoteError as e:
        raise _http_error(e)
