# File: app/routers/contact.py
from fastapi import APIRouter, HTTPException, Request

from app.core.ratelimit import limiter
from app.schemas.contact import ContactIn
from app.services.notify_email import EmailDeliveryError, send_contact_message

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("")
@limiter.limit("5/minute")
def contact(request: Request, body: ContactIn):
    name = (body.name or "").strip()
    email = (body.email or "").strip()
    message = (body.message or "").strip()
    if not name or not email or not message:
        raise HTTPException(status_code=400, detail="Missing fields")

    try:
        send_contact_message(name, email, message)
    except EmailDeliveryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True}
