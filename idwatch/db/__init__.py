"""
idwatch Database Layer
======================

SQLAlchemy 2.0 async persistence.

This module provides:
    - Async database session management
    - Base model class and ORM tables
    - Connection lifecycle hooks for the API

Usage:
    from idwatch.db import get_db, AsyncSession

    async def my_endpoint(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(FindingDB))
        ...

Author: idwatch Team
Version: 1.0.0
"""

from idwatch.db.session import (
    engine,
    async_session_factory,
    get_db,
    init_db,
    close_db,
    AsyncSession,
)
from idwatch.db.base import Base
from idwatch.db.models import (
    DeletionRequestDB,
    FindingDB,
    NotificationAlertDB,
    ProfileDB,
    VaultIdentifierDB,
)

__all__ = [
    "engine",
    "async_session_factory",
    "get_db",
    "init_db",
    "close_db",
    "AsyncSession",
    "Base",
    "ProfileDB",
    "VaultIdentifierDB",
    "FindingDB",
    "DeletionRequestDB",
    "NotificationAlertDB",
]
