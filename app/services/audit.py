# File: app/services/audit.py
# Project: citycare-backend

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit_log import AuditAction, AuditCategory, AuditLog

logger = logging.getLogger(__name__)

MAX_LOGS = 1000


def log_activity(
    db: Session,
    action: AuditAction,
    actor: str,
    target_id: str,
    target_title: str,
    details: str,
    category: AuditCategory,
) -> None:
    """Record an audit entry and keep only the newest MAX_LOGS. Never raises."""
    try:
        db.add(AuditLog(
            action=action,
            actor=actor,
            target_id=str(target_id or ""),
            target_title=(target_title or "")[:200],
            details=(details or "")[:1000],
            category=category,
        ))
        db.flush()
        stale = [
            row[0]
            for row in db.query(AuditLog.id)
            .order_by(AuditLog.id.desc())
            .offset(MAX_LOGS)
            .all()
        ]
        if stale:
            db.query(AuditLog).filter(AuditLog.id.in_(stale)).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to write audit log {action.value}: {e}", exc_info=True)
        try:
            db.rollback()
        except SQLAlchemyError:
            pass


def log_activity_safe(session_factory: Callable[[], Session], *args, **kwargs) -> None:
    """Same as log_activity with its own short-lived session."""
    db = session_factory()
    try:
        log_activity(db, *args, **kwargs)
    finally:
        db.close()


def list_logs(
    db: Session,
    category: Optional[AuditCategory] = None,
    actor_type: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 200,
) -> list[AuditLog]:
    q = db.query(AuditLog)
    if category:
        q = q.filter(AuditLog.category == category)
    if actor_type:
        # actors are stored as "<role>: <name>", e.g. "admin: Dana"
        q = q.filter(AuditLog.actor.ilike(f"%{actor_type}%"))
    if search:
        term = f"%{search}%"
        q = q.filter(
            AuditLog.details.ilike(term)
            | AuditLog.target_title.ilike(term)
            | AuditLog.actor.ilike(term)
        )
    return q.order_by(AuditLog.id.desc()).limit(limit).all()


def actor_label(user) -> str:
    if user is None:
        return "system"
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return f"{role}: {user.name or user.email}"
