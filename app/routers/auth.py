# File: app/routers/auth.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.ratelimit import limiter
from app.core.security import hash_password, verify_password, make_tokens, get_current_user
from app.db.session import get_db
from app.models.audit_log import AuditAction, AuditCategory
from app.models.user import User, UserRole
from app.schemas.auth import RegisterIn, LoginIn, TokenPair, MeOut
from app.services.audit import log_activity, actor_label

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=TokenPair, status_code=201)
@limiter.limit("10/minute")
def register(request: Request, body: RegisterIn, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=body.email,
        name=body.name.strip(),
        hashed_password=hash_password(body.password),
        role=UserRole.citizen,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log_activity(db, AuditAction.signup, actor_label(user), str(user.id), user.name,
                 "New account registered", AuditCategory.user_submission)

    # Sign-in immediately
    return make_tokens(user.email, user.role.value)

@router.post("/login", response_model=TokenPair)
@limiter.limit("20/minute")
def login(request: Request, body: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not verify_password(body.password, user.hashed_password):
        log_activity(db, AuditAction.login, "system", str(user.id), user.name,
                     "Failed sign-in attempt", AuditCategory.security_alert)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Your account has been deactivated. Please contact support.")
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    log_activity(db, AuditAction.login, actor_label(user), str(user.id), user.name,
                 "Signed in", AuditCategory.system)
    return make_tokens(user.email, user.role.value)

@router.get("/me", response_model=MeOut)
def me(current: User = Depends(get_current_user)):
    return {
        "id": current.id,
        "email": current.email,
        "name": current.name,
        "role": current.role.value,
        "is_active": current.is_active,
    }
