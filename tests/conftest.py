"""
pytest configuration and fixtures.

Database tests run against a temp-file SQLite database through
aiosqlite. The schema is created with a synchronous engine and the
async engine uses NullPool, so no connection outlives the event loop
of the test that opened it.

Author: idwatch Team
Version: 1.0.0
"""

import os
from typing import List

# The app module builds its engine at import time; keep it off PostgreSQL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from idwatch.db.base import Base
from idwatch.db.models import ProfileDB
from shared.schemas.vault import VaultIdentifier

from fixtures import OWNER_ID, PROFILE_ID


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "idwatch-test.db"


@pytest.fixture
def session_factory(db_path) -> async_sessionmaker:
    """Session factory over a fresh schema."""
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session; tests commit explicitly when they need to."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def profile_id(session_factory) -> str:
    """A committed profile owned by OWNER_ID."""
    async with session_factory() as session:
        session.add(ProfileDB(id=PROFILE_ID, owner_id=OWNER_ID, name="Jane Doe"))
        await session.commit()
    return PROFILE_ID


@pytest.fixture
def sample_identifiers() -> List[VaultIdentifier]:
    return [
        VaultIdentifier(id="v-email", profile_id=PROFILE_ID, data_type="email",
                        value="jane@example.com"),
        VaultIdentifier(id="v-phone", profile_id=PROFILE_ID, data_type="phone",
                        value="+1 555 010 1234"),
        VaultIdentifier(id="v-name", profile_id=PROFILE_ID, data_type="full_name",
                        value="Jane Doe", monitoring_enabled=False),
    ]
