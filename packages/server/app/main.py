"""
ChipChat API Server

Entry point for the FastAPI application.
"""

import logging
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.access import sql_access_store_factory
from app.core.auth import SessionRevocations
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.gates import SessionGateMiddleware
from app.core.livekit import VideoPlatform
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from app.core.realtime import ThreadConnectionManager
from app.core.redis import close_redis, create_redis
from app.core.session import SessionResolver
from app.api.auth import api_router as auth_api_router
from app.api.auth import router as auth_pages_router
from app.api.livekit import router as livekit_router
from app.api.pages import router as pages_router
from app.api.v1 import router as api_v1_router

log = structlog.get_logger()


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level.upper()]
        ),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Every backend client lives on ``app.state``; tests replace them there.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="ChipChat",
        description="Threads, tasks and video meetings for approved members.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    database = Database(settings.database_url, echo=settings.debug)
    redis_client = create_redis(settings.redis_url)

    app.state.settings = settings
    app.state.database = database
    app.state.redis = redis_client
    app.state.session_resolver = SessionResolver(settings, SessionRevocations(redis_client))
    app.state.access_store_factory = sql_access_store_factory(database)
    app.state.video_platform = VideoPlatform.from_settings(settings)
    app.state.realtime = ThreadConnectionManager(redis_client)

    # Middleware (the last added runs first)
    app.add_middleware(SessionGateMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-CSRF-Token"],
    )

    # Navigation pages (gated)
    app.include_router(pages_router, tags=["Pages"])
    app.include_router(auth_pages_router, tags=["Authentication"])

    # API routes (self-authenticating)
    app.include_router(auth_api_router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(livekit_router, prefix="/api/livekit", tags=["Video"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: database and Redis both answer."""
        checks = {"database": "ok", "redis": "ok"}
        try:
            async with app.state.database.session() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            log.warning("ready.database_unavailable", error=str(exc))
            checks["database"] = "unavailable"
        try:
            await app.state.redis.ping()
        except (RedisError, OSError) as exc:
            log.warning("ready.redis_unavailable", error=str(exc))
            checks["redis"] = "unavailable"

        if all(v == "ok" for v in checks.values()):
            return {"status": "ready", **checks}
        return JSONResponse(status_code=503, content={"status": "unavailable", **checks})

    @app.on_event("startup")
    async def on_startup():
        log.info("ChipChat starting", debug=settings.debug)
        if settings.gating_disabled:
            log.warning("gates.disabled", reason="placeholder database configuration")
        if app.state.video_platform is None:
            log.warning("livekit.not_configured")

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("ChipChat shutting down")
        await close_redis(app.state.redis)
        await app.state.database.dispose()

    return app


app = create_app()


def run() -> None:
    """CLI entry point: serve the app with uvicorn on the configured host/port."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
