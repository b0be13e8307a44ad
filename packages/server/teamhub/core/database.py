"""
Database connection, session management and the transactional unit of work.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from teamhub.core.config import get_settings
from teamhub.core.errors import ConflictError, StorageUnavailableError

settings = get_settings()
log = structlog.get_logger()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind=None):
    """Create all tables (development and tests only; use migrations in production)."""
    import teamhub.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def transaction(session_factory=None) -> AsyncGenerator[AsyncSession, None]:
    """One all-or-nothing unit of work.

    Uniqueness backstop violations surface as ConflictError, any other driver
    failure as StorageUnavailableError. Cancellation rolls back.
    """
    try:
        async with (session_factory or async_session_factory)() as session:
            async with session.begin():
                yield session
    except IntegrityError as exc:
        log.warning("db.integrity_conflict", error=str(exc.orig))
        raise ConflictError("Operation conflicts with existing data") from exc
    except DBAPIError as exc:
        log.error("db.unavailable", error=str(exc.orig))
        raise StorageUnavailableError(details=str(exc.orig)) from exc
