# File: app/models/report_upvote.py
# Project: citycare-backend

from __future__ import annotations
from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class ReportUpvote(Base):
    __tablename__ = "report_upvotes"
    __table_args__ = (UniqueConstraint("report_id", "user_id", name="uq_report_upvotes_report_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now())
