# File: app/main.py
# Project: citycare-backend

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from app.core.config import cors_origins_list, settings
from app.core.log import configure_logging
from app.core.ratelimit import limiter
from app.offline.runtime import build_offline_manager, build_report_repository
from app.routers import auth, reports, offline, contact, audit, users

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    repository = build_report_repository(settings)
    app.state.report_repository = repository
    app.state.offline_manager = build_offline_manager(settings, repository)
    queued = len(app.state.offline_manager.pending())
    if queued:
        logger.info("Starting with %d offline report(s) queued", queued)
    yield


app = FastAPI(title="CityCare API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}

app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(offline.router)
app.include_router(contact.router)
app.include_router(audit.router)
app.include_router(users.router)
