"""
User service: the minimal user records member listings join against.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.errors import InvalidArgumentError, NotFoundError
from teamhub.models.user import User

log = structlog.get_logger()


async def create_user(
    name: str,
    session: AsyncSession,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    if not name or not name.strip():
        raise InvalidArgumentError("User name cannot be empty")
    user = User(name=name.strip(), email=email, full_name=full_name, avatar_url=avatar_url)
    session.add(user)
    await session.flush()
    log.info("user.created", user_id=str(user.id))
    return user


async def get_user(user_id: uuid.UUID, session: AsyncSession) -> User:
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def find_user_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()
