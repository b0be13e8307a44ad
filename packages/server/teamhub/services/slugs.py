"""
Slug allocator: derives a unique, URL-safe org identifier from a display name.
"""

from __future__ import annotations

import re
import secrets
import unicodedata

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.config import get_settings
from teamhub.core.errors import ConflictError, InvalidArgumentError
from teamhub.models.organization import Organization
from teamhub_shared.schemas.organizations import SLUG_MAX_LENGTH, SLUG_MIN_LENGTH


def slugify(value: str) -> str:
    """Lowercase ASCII token with runs of other characters collapsed to '-'."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = value.lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    return value.strip("-")[:SLUG_MAX_LENGTH].rstrip("-")


def with_suffix(base: str, suffix: str) -> str:
    room = SLUG_MAX_LENGTH - len(suffix) - 1
    return f"{base[:room].rstrip('-')}-{suffix}"


async def slug_taken(
    slug: str, session: AsyncSession, exclude_org_id=None
) -> bool:
    """True if a live organization other than ``exclude_org_id`` holds ``slug``, ignoring case."""
    query = select(Organization.id).where(
        func.lower(Organization.slug) == slug.lower(), Organization.live_clause()
    )
    if exclude_org_id is not None:
        query = query.where(Organization.id != exclude_org_id)
    result = await session.execute(query.limit(1))
    return result.first() is not None


async def allocate(candidate_name: str, session: AsyncSession) -> str:
    """Allocate a free slug for ``candidate_name`` within the caller's transaction."""
    base = slugify(candidate_name)
    if len(base) < SLUG_MIN_LENGTH:
        raise InvalidArgumentError(
            "Please choose a name that is at least three characters long."
        )

    if not await slug_taken(base, session):
        return base

    settings = get_settings()
    for _ in range(settings.slug_max_attempts):
        slug = with_suffix(base, secrets.token_hex(settings.slug_suffix_bytes))
        if not await slug_taken(slug, session):
            return slug

    raise ConflictError(f"Could not allocate a unique slug for '{base}'")
