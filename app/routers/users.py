# File: app/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import require_role
from app.models.audit_log import AuditAction, AuditCategory
from app.models.user import User, UserRole
from app.schemas.user import UserOut, UserPatch
from app.services.audit import log_activity, actor_label

router = APIRouter(prefix="/admin/users", tags=["admin-users"])

def _user_out(u: User) -> UserOut:
    return UserOut(id=u.id, email=u.email, name=u.name, is_active=u.is_active, role=u.role.value)

@router.get("", response_model=list[UserOut], dependencies=[Depends(require_role("admin"))])
def list_users(db: Session = Depends(get_db)):
    return [_user_out(u) for u in db.query(User).order_by(User.id.desc())]

@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: int, body: UserPatch, admin: User = Depends(require_role("admin")),
                db: Session = Depends(get_db)):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(404, "Not found")
    if u.id == admin.id and (body.is_active is False or (body.role and body.role != UserRole.admin.value)):
        raise HTTPException(400, "You cannot demote or disable your own account")
    changes = []
    if body.name is not None:
        u.name = body.name
        changes.append("name")
    if body.is_active is not None:
        u.is_active = body.is_active
        changes.append("active" if body.is_active else "disabled")
    if body.role is not None:
        if body.role not in [x.value for x in UserRole]:
            raise HTTPException(400, "Bad role")
        u.role = UserRole(body.role)
        changes.append(f"role={body.role}")
    db.commit(); db.refresh(u)
    if changes:
        log_activity(db, AuditAction.user_updated,
                     actor_label(admin), str(u.id), u.name,
                     f"User updated: {', '.join(changes)}", AuditCategory.admin_action)
    return _user_out(u)
