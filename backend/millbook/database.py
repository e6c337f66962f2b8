"""Database engine, session factory, and declarative base.

One schema, one ``Base``.  ``get_db()`` is the FastAPI dependency that
hands each request its own session and owns the transaction boundary:
commit when the endpoint returns, rollback when anything raises.  Services
only ``flush()`` so that a booking row and its history entry always land
(or vanish) together.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from millbook.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Yield a session; commit on success, rollback on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
