# File: app/models/report.py
# Project: citycare-backend

from __future__ import annotations
import uuid
from enum import Enum as PyEnum
from sqlalchemy import String, Float, Enum, Integer, Numeric, DateTime, ForeignKey, func, Index
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class ReportStatus(PyEnum):
    pending = "Pending"
    in_progress = "In Progress"
    resolved = "Resolved"
    rejected = "Rejected"

class ReportPriority(PyEnum):
    low = "Low"
    medium = "Medium"
    high = "High"

class ReportCategory(PyEnum):
    pothole = "Pothole"
    lighting = "Lighting"
    trash = "Trash"
    graffiti = "Graffiti"
    water_leak = "Water Leak"
    tree_maintenance = "Tree Maintenance"
    other = "Other"

# default projected repair cost per category
COST_ESTIMATES: dict[ReportCategory, float] = {
    ReportCategory.pothole: 350,
    ReportCategory.lighting: 650,
    ReportCategory.water_leak: 1200,
    ReportCategory.graffiti: 150,
    ReportCategory.trash: 150,
    ReportCategory.tree_maintenance: 100,
    ReportCategory.other: 100,
}

def _new_id() -> str:
    return str(uuid.uuid4())

class Report(Base):
    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(4000), default="")
    category: Mapped[ReportCategory] = mapped_column(Enum(ReportCategory), index=True)
    status: Mapped[ReportStatus] = mapped_column(Enum(ReportStatus), default=ReportStatus.pending, index=True)
    priority: Mapped[ReportPriority] = mapped_column(Enum(ReportPriority), default=ReportPriority.medium)

    lat: Mapped[float] = mapped_column(Float)
    lng: Mapped[float] = mapped_column(Float)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    upvotes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    estimated_cost: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0)

    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    # local queue id of a report flushed from the offline queue; dedup key for retried drains
    client_ref: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)

    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True), nullable=True)

Index("ix_reports_lat_lng", Report.lat, Report.lng)
