# File: app/models/audit_log.py
# Project: citycare-backend

from __future__ import annotations
import uuid
from enum import Enum as PyEnum
from sqlalchemy import String, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class AuditAction(PyEnum):
    reported = "REPORTED"
    status_change = "STATUS_CHANGE"
    edited_report = "EDITED_REPORT"
    deleted = "DELETED"
    login = "LOGIN"
    logout = "LOGOUT"
    system_report = "SYSTEM_REPORT"
    signup = "SIGNUP"
    user_updated = "USER_UPDATED"

class AuditCategory(PyEnum):
    user_submission = "USER_SUBMISSION"
    admin_action = "ADMIN_ACTION"
    system = "SYSTEM"
    security_alert = "SECURITY_ALERT"

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    log_id: Mapped[str] = mapped_column(String(36), unique=True, default=lambda: str(uuid.uuid4()))
    at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), default="")
    target_title: Mapped[str] = mapped_column(String(200), default="")
    details: Mapped[str] = mapped_column(String(1000), default="")
    category: Mapped[AuditCategory] = mapped_column(Enum(AuditCategory), nullable=False, index=True)
