# File: app/db/all_models.py
# Project: citycare-backend
# Imports every model so Base.metadata is complete (alembic, create_all).

from app.db.base import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.report import Report  # noqa: F401
from app.models.report_upvote import ReportUpvote  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.kv_entry import KeyValueEntry  # noqa: F401
