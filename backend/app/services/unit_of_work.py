"""Unit of work: one database transaction per multi-entity operation.

Every operation that touches more than one record (bid + vehicle +
interaction, the five-way bid acceptance, delivery, rating, fleet size
bookkeeping) runs inside a ``UnitOfWork``:

    async with UnitOfWork(db, "accept_bid"):
        load = await locked_one(db, select(Load).where(Load.id == load_id))
        ...
    # committed here; an exception anywhere inside rolls everything back

Storage-level failures are translated into the typed application errors:

    StaleDataError   → InvalidStateError  (a concurrent writer won the row)
    IntegrityError   → ConflictError      (unique key taken meanwhile)
                       InvalidStateError  (NOT NULL, CHECK or FK violation)
    SQLAlchemyError  → InternalError      (logged with traceback)
"""

import logging

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.middleware.exceptions import (
    ConflictError,
    FreightBidException,
    InternalError,
    InvalidStateError,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

INVALID_DATA_MESSAGE = "The submitted values violate a data constraint"


class UnitOfWork:
    def __init__(
        self,
        db: AsyncSession,
        operation: str,
        *,
        conflict_message: str = "A record with this value already exists",
        stale_message: str = "The record was modified concurrently; reload and try again",
    ):
        self.db = db
        self.operation = operation
        self.conflict_message = conflict_message
        self.stale_message = stale_message

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            await self.rollback()
            translated = self._translate(exc)
            if translated is not None:
                raise translated from exc
            return False

        try:
            await self.db.commit()
        except SQLAlchemyError as commit_exc:
            await self.rollback()
            translated = self._translate(commit_exc)
            raise translated from commit_exc
        return False

    async def flush(self) -> None:
        """Flush pending writes so constraint violations surface inside the block."""
        await self.db.flush()

    async def rollback(self) -> None:
        await self.db.rollback()

    def _translate(self, exc: BaseException) -> FreightBidException | None:
        if isinstance(exc, FreightBidException):
            return None
        if isinstance(exc, StaleDataError):
            logger.warning("%s lost a concurrent update: %s", self.operation, exc)
            return InvalidStateError(self.stale_message)
        if isinstance(exc, IntegrityError):
            if is_unique_violation(exc):
                logger.warning("%s hit a unique violation: %s", self.operation, exc.orig)
                return ConflictError(self.conflict_message)
            logger.error("%s violated a data constraint: %s", self.operation, exc.orig)
            return InvalidStateError(INVALID_DATA_MESSAGE)
        if isinstance(exc, SQLAlchemyError):
            logger.error("%s failed in storage", self.operation, exc_info=exc)
            return InternalError()
        return None


def for_update(stmt: Select) -> Select:
    """Re-read rows inside the transaction, bypassing the identity map, with a row lock.

    ``FOR UPDATE`` is emitted on PostgreSQL and ignored by SQLite; the
    version columns on Load and Vehicle cover both.
    """
    return stmt.with_for_update().execution_options(populate_existing=True)


async def locked_one(db: AsyncSession, stmt: Select):
    """Fetch a single row (or None) through ``for_update``."""
    result = await db.execute(for_update(stmt))
    return result.scalars().unique().one_or_none()


async def locked_all(db: AsyncSession, stmt: Select) -> list:
    result = await db.execute(for_update(stmt))
    return list(result.scalars().unique().all())
