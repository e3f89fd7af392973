"""
Shared slowapi limiter.
Routes decorate with @limiter.limit(...); the application factory registers
the same instance on app.state so SlowAPIMiddleware sees one storage.
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
