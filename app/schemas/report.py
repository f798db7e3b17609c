# File: app/schemas/report.py
# Project: citycare-backend

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Union
from datetime import datetime

from app.models.report import ReportCategory, ReportPriority, ReportStatus


class CamelModel(BaseModel):
    """Reports travel as camelCase JSON; snake_case names are accepted too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Coordinates(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ReportCreate(CamelModel):
    title: str = Field(min_length=3, max_length=200)
    category: ReportCategory
    description: str = Field(default="", max_length=4000)
    priority: ReportPriority = ReportPriority.medium
    coordinates: Coordinates
    image_url: Optional[str] = None


class ReportOut(CamelModel):
    id: str
    title: str
    category: ReportCategory
    description: str = ""
    status: ReportStatus
    priority: ReportPriority
    coordinates: Coordinates
    image_url: Optional[str] = None
    upvotes: int = 0
    estimated_cost: float = 0
    # int for local accounts, uuid string for hosted-backend accounts
    user_id: Optional[Union[int, str]] = None
    client_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReportUpdate(CamelModel):
    """Partial admin edit; only fields present in the payload are written."""
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    category: Optional[ReportCategory] = None
    description: Optional[str] = Field(default=None, max_length=4000)
    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    coordinates: Optional[Coordinates] = None
    image_url: Optional[str] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)


class StatusChangeRequested(CamelModel):
    status: ReportStatus


class UpvotedReportsOut(CamelModel):
    report_ids: list[str]
