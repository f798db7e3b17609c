# File: app/schemas/offline.py
# Project: citycare-backend

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict

from app.models.report import ReportCategory, ReportPriority
from app.schemas.report import CamelModel, Coordinates, ReportCreate, ReportOut


class QueuedReport(CamelModel):
    """A report captured while offline. Immutable once enqueued."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: ReportCategory
    description: str = ""
    priority: ReportPriority = ReportPriority.medium
    coordinates: Coordinates
    image_url: Optional[str] = None
    created_at: datetime
    user_id: Optional[int] = None

    def to_draft(self) -> ReportCreate:
        return ReportCreate(
            title=self.title,
            category=self.category,
            description=self.description,
            priority=self.priority,
            coordinates=self.coordinates,
            image_url=self.image_url,
        )


class ConnectivityIn(CamelModel):
    offline: bool


class ConnectivityOut(CamelModel):
    offline: bool
    draining: bool
    queued: int


class SyncNotification(CamelModel):
    count: int
    message: str
    at: datetime


class DrainResult(CamelModel):
    synced: list[ReportOut]
    remaining: int
