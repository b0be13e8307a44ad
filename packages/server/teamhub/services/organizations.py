"""
Organization store: creation, rename/reslug, soft delete and lookups.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    invalid_from_validation,
)
from teamhub.models.membership import Membership
from teamhub.models.organization import Organization
from teamhub.services import org_settings, slugs
from teamhub_shared.schemas.common import OrgRole, SortDirection
from teamhub_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgSlug,
    OrgUpdateRequest,
)

log = structlog.get_logger()

SORTABLE_COLUMNS = {
    "name": Organization.name,
    "slug": Organization.slug,
    "created_at": Organization.created_at,
}


async def create_org(
    creator_id: uuid.UUID, name: str, session: AsyncSession
) -> Organization:
    """Create an org and make the creator its owner, in the caller's transaction."""
    if not name or not name.strip():
        raise InvalidArgumentError("Name cannot be empty")
    try:
        req = OrgCreateRequest(name=name)
    except ValidationError as exc:
        raise invalid_from_validation(exc) from exc

    slug = await slugs.allocate(req.name, session)

    org = Organization(name=req.name, slug=slug)
    session.add(org)
    await session.flush()

    membership = Membership(
        organization_id=org.id,
        user_id=creator_id,
        role=OrgRole.OWNER.value,
        created_at=org.created_at,
    )
    session.add(membership)
    await session.flush()

    log.info("org.created", org_id=str(org.id), slug=slug, creator=str(creator_id))
    return org


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Get a live org by id; raises NotFoundError if absent or deleted."""
    result = await session.execute(
        Organization.select_live().where(Organization.id == org_id)
    )
    org = result.scalar_one_or_none()
    if not org:
        raise NotFoundError("Organization", org_id)
    return org


async def get_org_by_slug(org_slug: str, session: AsyncSession) -> Organization:
    """Get a live org by slug; raises NotFoundError if absent or deleted."""
    result = await session.execute(
        Organization.select_live().where(
            func.lower(Organization.slug) == org_slug.lower()
        )
    )
    org = result.scalar_one_or_none()
    if not org:
        raise NotFoundError("Organization", org_slug)
    return org


async def find_org_by_membership_id(
    membership_id: uuid.UUID, session: AsyncSession
) -> Optional[Organization]:
    result = await session.execute(
        Organization.select_live()
        .join(Membership, Membership.organization_id == Organization.id)
        .where(Membership.id == membership_id, Membership.live_clause())
    )
    return result.scalar_one_or_none()


async def find_orgs(
    session: AsyncSession,
    offset: int = 0,
    limit: int = 50,
    order_by: str = "created_at",
    order_dir: SortDirection = SortDirection.DESC,
    search_term: str = "",
    include_deleted: bool = False,
) -> tuple[int, list[Organization]]:
    """Admin listing: case-insensitive name search with paging."""
    column = SORTABLE_COLUMNS.get(order_by)
    if column is None:
        raise InvalidArgumentError(f"Cannot order organizations by '{order_by}'")
    if offset < 0 or limit < 1:
        raise InvalidArgumentError("offset must be >= 0 and limit >= 1")

    conditions = [func.lower(Organization.name).like(f"%{search_term.lower()}%")]
    if not include_deleted:
        conditions.append(Organization.live_clause())

    total = await session.scalar(
        select(func.count()).select_from(Organization).where(*conditions)
    )
    ordering = column.asc() if SortDirection(order_dir) == SortDirection.ASC else column.desc()
    result = await session.execute(
        select(Organization)
        .where(*conditions)
        .order_by(ordering, Organization.id)
        .offset(offset)
        .limit(limit)
    )
    return total or 0, list(result.scalars().all())


async def update_org(
    org_id: uuid.UUID,
    session: AsyncSession,
    name: Optional[str] = None,
    slug: Optional[str] = None,
) -> Organization:
    """Rename and/or reslug an org.

    Returns the stored record unchanged when neither value differs.
    """
    try:
        req = OrgUpdateRequest(name=name, slug=slug)
    except ValidationError as exc:
        raise invalid_from_validation(exc) from exc
    name = req.name or None
    slug = req.slug or None
    if not name and not slug:
        raise InvalidArgumentError("No update provided")

    org = await get_org(org_id, session)

    name_changes = name is not None and name != org.name
    slug_changes = slug is not None and slug != org.slug
    if not name_changes and not slug_changes:
        return org

    if slug_changes:
        try:
            OrgSlug(slug=slug)
        except ValidationError as exc:
            raise invalid_from_validation(exc) from exc
        if await slugs.slug_taken(slug, session, exclude_org_id=org.id):
            raise ConflictError(f"Slug '{slug}' is already in use")
        org.slug = slug
    if name_changes:
        org.name = name

    org.updated_at = datetime.now(timezone.utc)
    session.add(org)
    await session.flush()

    log.info("org.renamed", org_id=str(org.id), slug=org.slug)
    return org


async def delete_org(org_id: uuid.UUID, session: AsyncSession) -> None:
    """Soft-delete an org and its settings row.

    Memberships, invites and SSO configs stay as tombstoned orphans.
    """
    org = await get_org(org_id, session)
    org.mark_deleted()
    org.updated_at = datetime.now(timezone.utc)
    session.add(org)
    await session.flush()

    await org_settings.delete_org_settings(org_id, session)
    log.info("org.deleted", org_id=str(org_id), slug=org.slug)
