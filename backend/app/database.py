"""Database engine, session factory, and declarative base.

All marketplace tables (carriers, shippers, loads, vehicles, bids,
interactions, ratings) share a single ``Base``.  Routers receive an
``AsyncSession`` through ``get_db()``; multi-entity writes inside the
services are wrapped in a ``UnitOfWork`` (see app/services/unit_of_work.py).
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base class ──────────────────────────────────────────────

class Base(DeclarativeBase):
    """Declarative base for every marketplace model."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a request-scoped session.

    Services commit their own units of work; anything left pending when
    the request finishes is committed here, and any exception rolls the
    session back.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
