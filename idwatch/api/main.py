"""
idwatch API Main Application
============================

FastAPI application entry point for the idwatch REST API.

Features:
    - OpenAPI documentation at /docs
    - Profile, vault, scan, finding, risk and alert endpoints
    - Uniform ``{"error", "status"}`` error bodies
    - Async lifespan management

Usage:
    # Development:
    uvicorn idwatch.api.main:app --reload

    # Production:
    uvicorn idwatch.api.main:app --host 0.0.0.0 --port 8000

Author: idwatch Team
Version: 1.0.0
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from idwatch.api.dependencies import ServiceContainer
from idwatch.api.errors import register_error_handlers
from idwatch.api.routes import (
    alerts_router,
    findings_router,
    health_router,
    profiles_router,
    scans_router,
)
from idwatch.config import settings
from idwatch.db import close_db, init_db
from idwatch.logging import RequestLoggingMiddleware, get_logger, setup_logging


setup_logging(level=settings.log_level, json_output=settings.log_json)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start and stop the database pool and shared services."""
    logger.info("Starting idwatch API...")

    await init_db()
    container = ServiceContainer.get_instance()
    await container.initialize()

    logger.info("idwatch API started successfully")

    yield

    logger.info("Shutting down idwatch API...")
    await container.shutdown()
    await close_db()
    logger.info("idwatch API shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title="idwatch API",
        description=(
            "Identity exposure monitoring\n\n"
            "- Vault of monitored identifiers per profile\n"
            "- Scans against an external evidence source\n"
            "- Finding lifecycle and removal tracking\n"
            "- Consolidated 0-100 risk score and alerts\n\n"
            "## Authentication\n"
            "All endpoints except `/health` require a valid JWT token. "
            "Include `Authorization: Bearer <token>` in request headers.\n\n"
            "Roles: `admin`, `member`"
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(profiles_router)
    app.include_router(scans_router)
    app.include_router(findings_router)
    app.include_router(alerts_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint returning API info."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "idwatch.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
