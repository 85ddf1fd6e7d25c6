"""
Health Routes
=============

Endpoints:
    GET /health - Basic health with dependency status

Author: idwatch Team
Version: 1.0.0
"""

import time
from typing import Dict

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from idwatch.api.dependencies import ServiceContainer
from idwatch.config import settings
from idwatch.db import engine
from idwatch.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    dependencies: Dict[str, str]


@router.get("/health", response_model=HealthResponse, summary="Health Check")
async def health_check() -> HealthResponse:
    """
    Report service health.

    ``degraded`` when the database is unreachable or no evidence
    source is configured.
    """
    dependencies: Dict[str, str] = {}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        dependencies["database"] = "healthy"
    except Exception as e:
        logger.warning(f"Database health check failed: {type(e).__name__}")
        dependencies["database"] = "unhealthy"

    source = ServiceContainer.get_instance().evidence_source
    if source is None or not source.configured:
        dependencies["evidence_source"] = "unconfigured"
    else:
        dependencies["evidence_source"] = source.circuit_state

    healthy = (
        dependencies["database"] == "healthy"
        and dependencies["evidence_source"] == "closed"
    )

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=settings.app_version,
        uptime_seconds=round(time.time() - _start_time, 1),
        dependencies=dependencies,
    )
