"""
Flomark: FastAPI application entrypoint.
Configures logging, lifespan, CORS, rate limiting, exception handlers, the
demo-mode routes and the v1 API.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.core.rate_limit import limiter
from app.db.session import engine
from app.demo import routes as demo_routes
from app.demo.scheduler import demo_scheduler
from app.demo.store import demo_store

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Seeds the demo store and starts its reset timer when DEMO_MODE is on.
    """
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    if settings.DEMO_MODE:
        logger.info("Demo mode enabled: serving from the in-memory store")
        demo_store.reset()
        demo_scheduler.start()
    yield
    logger.info("Shutting down %s", settings.APP_NAME)
    if settings.DEMO_MODE:
        await demo_scheduler.stop()
    await engine.dispose()


# ── Application factory ───────────────────────────────────────────────────────
def create_application() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Flomark Kanban API: projects, boards, lists, tasks and comments "
            "with realtime project sync over WebSocket."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Rate limiting middleware ───────────────────────────────────────────────
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # ── Custom exception handlers ─────────────────────────────────────────────
    register_exception_handlers(app)

    # ── API routers ───────────────────────────────────────────────────────────
    # Demo routes shadow the database-backed ones, so they must come first
    if settings.DEMO_MODE:
        app.include_router(demo_routes.router, prefix=settings.API_V1_STR)
    app.include_router(demo_routes.info_router, prefix=settings.API_V1_STR)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # ── Health check ──────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check() -> dict[str, str | bool]:
        return {
            "status": "ok",
            "service": settings.APP_NAME,
            "demo_mode": settings.DEMO_MODE,
        }

    return app


app = create_application()
