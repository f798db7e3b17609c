# File: app/schemas/audit.py
# Project: citycare-backend

from datetime import datetime
from pydantic import BaseModel

from app.models.audit_log import AuditAction, AuditCategory


class AuditLogOut(BaseModel):
    log_id: str
    at: datetime
    action: AuditAction
    actor: str
    target_id: str
    target_title: str
    details: str
    category: AuditCategory

    class Config:
        from_attributes = True
