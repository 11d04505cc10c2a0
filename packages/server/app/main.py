"""
tenantcore API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import register_error_handlers
from app.core.middleware import RequestContextMiddleware
from app.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="tenantcore",
        description="Tenant membership, invitation and subscription-entitlement core.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (order matters — outermost first)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    register_error_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check: the database answers."""
        await session.execute(text("SELECT 1"))
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("tenantcore starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("tenantcore shutting down")

    return app


app = create_app()
