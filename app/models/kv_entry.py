# File: app/models/kv_entry.py
# Project: citycare-backend

from __future__ import annotations
from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class KeyValueEntry(Base):
    """Durable key/value row backing the offline queue and connectivity flag."""
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
