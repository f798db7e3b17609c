# File: app/routers/audit.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import require_role
from app.db.session import get_db
from app.models.audit_log import AuditCategory
from app.schemas.audit import AuditLogOut
from app.services.audit import list_logs

router = APIRouter(prefix="/admin/audit", tags=["admin-audit"])

@router.get("", response_model=list[AuditLogOut], dependencies=[Depends(require_role("admin"))])
def audit_trail(
    category: Optional[AuditCategory] = Query(default=None),
    actor_type: Optional[str] = Query(default=None, description="citizen, admin or system"),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return list_logs(db, category=category, actor_type=actor_type, search=search, limit=limit)
