# File: app/schemas/user.py
# Project: citycare-backend

from pydantic import BaseModel, EmailStr
from typing import Optional

class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: str
    is_active: bool
    role: str

class UserPatch(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[str] = None
