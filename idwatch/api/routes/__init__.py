"""
idwatch API Routes Package
==========================

FastAPI route modules.

Author: idwatch Team
Version: 1.0.0
"""

from idwatch.api.routes.alerts import router as alerts_router
from idwatch.api.routes.findings import router as findings_router
from idwatch.api.routes.health import router as health_router
from idwatch.api.routes.profiles import router as profiles_router
from idwatch.api.routes.scans import router as scans_router

__all__ = [
    "alerts_router",
    "findings_router",
    "health_router",
    "profiles_router",
    "scans_router",
]
