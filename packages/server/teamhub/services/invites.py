"""
Invite store: link-based (generic) membership invites per organization.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.errors import InvalidArgumentError, NotFoundError
from teamhub.models.invite import MembershipInvite
from teamhub.models.organization import Organization
from teamhub_shared.schemas.common import OrgRole

log = structlog.get_logger()


async def get_invite(invite_id: uuid.UUID, session: AsyncSession) -> MembershipInvite:
    """Get an invite whether or not it has been invalidated."""
    result = await session.execute(
        MembershipInvite.select_live().where(MembershipInvite.id == invite_id)
    )
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFoundError("Invite", invite_id, "No invite found for the given ID.")
    return invite


async def find_generic_invite(
    org_id: uuid.UUID, session: AsyncSession
) -> Optional[MembershipInvite]:
    """The currently valid emailless invite of an org, if any."""
    result = await session.execute(
        MembershipInvite.select_live().where(
            MembershipInvite.organization_id == org_id,
            MembershipInvite.invited_email.is_(None),
            MembershipInvite.invalidation_time.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def list_invites(org_id: uuid.UUID, session: AsyncSession) -> list[MembershipInvite]:
    """Every invite of an org, valid or not, oldest first."""
    result = await session.execute(
        MembershipInvite.select_live()
        .where(MembershipInvite.organization_id == org_id)
        .order_by(MembershipInvite.created_at, MembershipInvite.id)
    )
    return list(result.scalars().all())


async def reset_generic_invite(
    org_id: uuid.UUID,
    session: AsyncSession,
    role: OrgRole = OrgRole.MEMBER,
) -> MembershipInvite:
    """Invalidate the current generic invite (if any) and issue a fresh one."""
    try:
        role = OrgRole(role)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown role '{role}'") from exc

    org = await session.execute(
        select(Organization.id).where(Organization.id == org_id, Organization.live_clause())
    )
    if org.first() is None:
        raise NotFoundError("Organization", org_id)

    now = datetime.now(timezone.utc)
    current = await find_generic_invite(org_id, session)
    if current is not None:
        current.invalidation_time = now
        session.add(current)
        # The invalidation must reach the database before the replacement
        # satisfies the one-valid-generic-invite index.
        await session.flush()

    invite = MembershipInvite(organization_id=org_id, role=role.value, created_at=now)
    session.add(invite)
    await session.flush()

    log.info(
        "invite.reset",
        org_id=str(org_id),
        invite_id=str(invite.id),
        previous_invite_id=str(current.id) if current else None,
    )
    return invite
