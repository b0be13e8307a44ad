"""Shared test fixtures: in-memory SQLite through aiosqlite."""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from teamhub.core.config import get_settings
from teamhub.core.database import init_db, transaction
from teamhub.services import users
from teamhub.services.membership_manager import MembershipManager


@pytest.fixture(autouse=True)
def encryption_key(monkeypatch):
    """Fresh Fernet key per test, visible through get_settings()."""
    key = Fernet.generate_key().decode()
    monkeypatch.setenv("TEAMHUB_ENCRYPTION_KEY", key)
    get_settings.cache_clear()
    yield key
    get_settings.cache_clear()


@pytest.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def manager(session_factory):
    return MembershipManager(session_factory)


@pytest.fixture
def make_user(session_factory):
    """Create and commit a user; returns the User row."""

    async def _make(name: str = "Ada", email=None, full_name=None, avatar_url=None):
        async with transaction(session_factory) as session:
            return await users.create_user(
                name, session, email=email, full_name=full_name, avatar_url=avatar_url
            )

    return _make
