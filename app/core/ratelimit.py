# File: app/core/ratelimit.py
# Project: citycare-backend

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# disabled in tests through RATE_LIMIT_ENABLED=false
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
