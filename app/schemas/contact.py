# File: app/schemas/contact.py
# Project: citycare-backend

from pydantic import BaseModel
from typing import Optional


class ContactIn(BaseModel):
    # presence is checked in the router so the client gets "Missing fields"
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
