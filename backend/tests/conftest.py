"""Pytest configuration and fixtures for MillBook tests.

Each test gets its own SQLite database file (via aiosqlite) with the full
schema and the default cycle-time rows.  API tests talk to the real app
through httpx with ``get_db`` pointed at that database.
"""

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from millbook.auth.jwt import AccessLevel, create_access_token
from millbook.config import settings
from millbook.database import Base, get_db
from millbook.main import app
from millbook.models import Carrier, Client, CycleTimeConfig
from millbook.services.cycle_times import DEFAULT_CYCLE_TIMES

# No Redis in the test run
settings.cache_enabled = False

PLANNER_ID = 7
VIEWER_ID = 8


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database with the full schema and default cycle times."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        for category, ct in DEFAULT_CYCLE_TIMES.items():
            session.add(CycleTimeConfig(
                category=category,
                tons_per_hour=ct.tons_per_hour,
                setup_minutes=ct.setup_minutes,
                cleaning_minutes=ct.cleaning_minutes,
            ))
        await session.commit()

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for calling services directly; tests commit as needed."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client; each request gets its own committed-or-rolled-back session."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_client_party(db_session: AsyncSession) -> Client:
    party = Client(code="C001", name="Panificio Rossi")
    db_session.add(party)
    await db_session.commit()
    return party


@pytest_asyncio.fixture
async def test_carrier(db_session: AsyncSession) -> Carrier:
    carrier = Carrier(code="T001", name="Trasporti Bianchi")
    db_session.add(carrier)
    await db_session.commit()
    return carrier


@pytest.fixture
def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture
def modify_headers() -> dict:
    token = create_access_token(user_id=PLANNER_ID, access_level=AccessLevel.MODIFY)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def view_headers() -> dict:
    token = create_access_token(user_id=VIEWER_ID, access_level=AccessLevel.VIEW)
    return {"Authorization": f"Bearer {token}"}
