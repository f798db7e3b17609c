# File: app/services/reports.py
# Project: citycare-backend

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.report import COST_ESTIMATES, Report, ReportStatus
from app.models.report_upvote import ReportUpvote
from app.schemas.report import Coordinates, ReportCreate, ReportOut

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Any failure of the report backend (network, auth, validation, storage)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ReportNotFound(RemoteError):
    pass


class AlreadyUpvoted(RemoteError):
    """The acting user has upvoted this report before. Expected, not fatal."""


class ReportRepository(Protocol):
    def create(self, draft: ReportCreate, owner_id: Optional[int] = None,
               client_ref: Optional[str] = None) -> ReportOut: ...

    def list(self) -> list[ReportOut]: ...

    def get(self, report_id: str) -> ReportOut: ...

    def update(self, report_id: str, fields: dict[str, Any]) -> ReportOut: ...

    def delete(self, report_id: str) -> None: ...

    def upvote(self, report_id: str, user_id: int) -> ReportOut: ...

    def upvoted_by(self, user_id: int) -> list[str]: ...


def report_to_out(obj: Report) -> ReportOut:
    return ReportOut(
        id=obj.id,
        title=obj.title,
        category=obj.category,
        description=obj.description or "",
        status=obj.status,
        priority=obj.priority,
        coordinates=Coordinates(lat=obj.lat, lng=obj.lng),
        image_url=obj.image_url,
        upvotes=obj.upvotes or 0,
        estimated_cost=float(obj.estimated_cost or 0),
        user_id=obj.user_id,
        client_ref=obj.client_ref,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def apply_report_fields(obj: Report, fields: dict[str, Any]) -> None:
    """
    Copy a partial edit onto a report row.

    A category change without an explicit cost resets the projected cost
    to the new category's estimate.
    """
    for key in ("title", "description", "status", "priority"):
        if fields.get(key) is not None:
            setattr(obj, key, fields[key])
    if "image_url" in fields:
        obj.image_url = fields["image_url"]
    if "coordinates" in fields and fields["coordinates"] is not None:
        coords = fields["coordinates"]
        obj.lat = coords["lat"]
        obj.lng = coords["lng"]
    if "category" in fields and fields["category"] is not None:
        if fields["category"] != obj.category and fields.get("estimated_cost") is None:
            obj.estimated_cost = COST_ESTIMATES[fields["category"]]
        obj.category = fields["category"]
    if fields.get("estimated_cost") is not None:
        obj.estimated_cost = fields["estimated_cost"]
    obj.updated_at = datetime.now(timezone.utc)


class SqlReportRepository:
    """Reports in the service's own database. Each call opens and closes its session."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def create(self, draft: ReportCreate, owner_id: Optional[int] = None,
               client_ref: Optional[str] = None) -> ReportOut:
        db = self._session_factory()
        try:
            if client_ref:
                existing = db.query(Report).filter(Report.client_ref == client_ref).first()
                if existing:
                    # resubmission of a queue entry that was accepted before the queue was cleared
                    logger.info("Report for queue entry %s already exists as %s", client_ref, existing.id)
                    return report_to_out(existing)
            obj = Report(
                title=draft.title.strip(),
                category=draft.category,
                description=draft.description,
                status=ReportStatus.pending,
                priority=draft.priority,
                lat=draft.coordinates.lat,
                lng=draft.coordinates.lng,
                image_url=draft.image_url,
                upvotes=0,
                estimated_cost=COST_ESTIMATES[draft.category],
                user_id=owner_id,
                client_ref=client_ref,
            )
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return report_to_out(obj)
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError("Failed to create report", e) from e
        finally:
            db.close()

    def list(self) -> list[ReportOut]:
        db = self._session_factory()
        try:
            rows = db.query(Report).order_by(Report.created_at.desc()).all()
            return [report_to_out(r) for r in rows]
        except SQLAlchemyError as e:
            raise RemoteError("Failed to load reports", e) from e
        finally:
            db.close()

    def get(self, report_id: str) -> ReportOut:
        db = self._session_factory()
        try:
            obj = db.get(Report, report_id)
            if not obj:
                raise ReportNotFound(f"Report {report_id} not found")
            return report_to_out(obj)
        except SQLAlchemyError as e:
            raise RemoteError("Failed to load report", e) from e
        finally:
            db.close()

    def update(self, report_id: str, fields: dict[str, Any]) -> ReportOut:
        db = self._session_factory()
        try:
            obj = db.get(Report, report_id)
            if not obj:
                raise ReportNotFound(f"Report {report_id} not found")
            apply_report_fields(obj, fields)
            db.commit()
            db.refresh(obj)
            return report_to_out(obj)
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError("Failed to update report", e) from e
        finally:
            db.close()

    def delete(self, report_id: str) -> None:
        db = self._session_factory()
        try:
            obj = db.get(Report, report_id)
            if not obj:
                raise ReportNotFound(f"Report {report_id} not found")
            db.query(ReportUpvote).filter(ReportUpvote.report_id == report_id).delete()
            db.delete(obj)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError("Failed to delete report", e) from e
        finally:
            db.close()

    def upvote(self, report_id: str, user_id: int) -> ReportOut:
        db = self._session_factory()
        try:
            obj = db.get(Report, report_id)
            if not obj:
                raise ReportNotFound(f"Report {report_id} not found")
            db.add(ReportUpvote(report_id=report_id, user_id=user_id))
            try:
                db.flush()
            except IntegrityError as e:
                db.rollback()
                raise AlreadyUpvoted("You have already upvoted this report", e) from e
            obj.upvotes = (obj.upvotes or 0) + 1
            db.commit()
            db.refresh(obj)
            return report_to_out(obj)
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError("Failed to upvote report", e) from e
        finally:
            db.close()

    def upvoted_by(self, user_id: int) -> list[str]:
        db = self._session_factory()
        try:
            rows = db.query(ReportUpvote.report_id).filter(ReportUpvote.user_id == user_id).all()
            return [r[0] for r in rows]
        except SQLAlchemyError as e:
            raise RemoteError("Failed to load upvotes", e) from e
        finally:
            db.close()
