# File: app/core/log.py
# Project: citycare-backend

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once at startup from LOG_LEVEL."""
    level_name = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    # uvicorn access lines are noisy next to the sync logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
