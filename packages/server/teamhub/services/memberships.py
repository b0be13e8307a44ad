"""
Membership store: users in organizations, their roles, and the owner floor.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from teamhub.models.membership import Membership
from teamhub.models.organization import Organization
from teamhub.models.user import User
from teamhub_shared.schemas.common import AddMemberResult, OrgRole
from teamhub_shared.schemas.organizations import MemberInfo

log = structlog.get_logger()


def _role(role) -> OrgRole:
    try:
        return OrgRole(role)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown role '{role}'") from exc


async def _require_live_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    result = await session.execute(
        Organization.select_live().where(Organization.id == org_id)
    )
    org = result.scalar_one_or_none()
    if not org:
        raise NotFoundError(
            "Organization",
            org_id,
            "An organization with this ID could not be found",
        )
    return org


async def _require_membership(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Membership:
    membership = await find_membership(user_id, org_id, session)
    if not membership:
        raise NotFoundError(
            "Membership",
            f"{user_id}@{org_id}",
            "The user is not currently a member of this organization",
        )
    return membership


async def find_membership(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[Membership]:
    result = await session.execute(
        Membership.select_live().where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    )
    return result.scalar_one_or_none()


async def list_members(org_id: uuid.UUID, session: AsyncSession) -> list[MemberInfo]:
    """Live members of an org with display data, most recent first."""
    result = await session.execute(
        select(User, Membership)
        .join(Membership, Membership.user_id == User.id)
        .where(Membership.organization_id == org_id, Membership.live_clause())
        .order_by(Membership.created_at.desc(), Membership.id)
    )
    return [
        MemberInfo(
            user_id=user.id,
            full_name=user.display_name,
            primary_email=user.email,
            avatar_url=user.avatar_url,
            role=membership.role,
            member_since=membership.created_at,
        )
        for user, membership in result.all()
    ]


async def list_user_orgs(user_id: uuid.UUID, session: AsyncSession) -> list[Organization]:
    """Live orgs the user is a live member of."""
    result = await session.execute(
        Organization.select_live()
        .join(Membership, Membership.organization_id == Organization.id)
        .where(Membership.user_id == user_id, Membership.live_clause())
        .order_by(Organization.created_at, Organization.id)
    )
    return list(result.scalars().unique().all())


async def _live_owner_ids(
    org_id: uuid.UUID, session: AsyncSession, lock: bool = False
) -> list[uuid.UUID]:
    query = select(Membership.user_id).where(
        Membership.organization_id == org_id,
        Membership.role == OrgRole.OWNER.value,
        Membership.live_clause(),
    )
    if lock:
        query = query.with_for_update()
    result = await session.execute(query)
    return list(result.scalars().all())


async def find_sole_owned_orgs(
    user_id: uuid.UUID, session: AsyncSession
) -> list[Organization]:
    """Orgs where the user is the only live owner."""
    sole_owned = []
    for org in await list_user_orgs(user_id, session):
        owners = await _live_owner_ids(org.id, session)
        if owners == [user_id]:
            sole_owned.append(org)
    return sole_owned


async def ensure_owner_remains(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> None:
    """Raise ConflictError unless a live owner other than ``user_id`` exists.

    Re-evaluated inside the caller's transaction with the owner rows locked,
    for every mutation that can lower the owner count.
    """
    owners = await _live_owner_ids(org_id, session, lock=True)
    if not any(owner != user_id for owner in owners):
        raise ConflictError("An organization must retain at least one owner")


async def add_member(
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    session: AsyncSession,
    role: OrgRole = OrgRole.MEMBER,
) -> AddMemberResult:
    """Idempotent join."""
    role = _role(role)
    await _require_live_org(org_id, session)

    if await find_membership(user_id, org_id, session):
        return AddMemberResult.ALREADY_MEMBER

    session.add(
        Membership(organization_id=org_id, user_id=user_id, role=role.value)
    )
    await session.flush()

    log.info("membership.added", user_id=str(user_id), org_id=str(org_id), role=role.value)
    return AddMemberResult.ADDED


async def set_role(
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    role: OrgRole,
    session: AsyncSession,
) -> Membership:
    role = _role(role)
    await _require_live_org(org_id, session)
    membership = await _require_membership(user_id, org_id, session)

    if membership.role == OrgRole.OWNER.value and role != OrgRole.OWNER:
        await ensure_owner_remains(org_id, user_id, session)

    if membership.role != role.value:
        membership.role = role.value
        session.add(membership)
        await session.flush()
        log.info(
            "membership.role_changed",
            user_id=str(user_id),
            org_id=str(org_id),
            role=role.value,
        )
    return membership


async def remove_member(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> None:
    """Soft-delete a membership; the last owner cannot leave."""
    await _require_live_org(org_id, session)
    membership = await _require_membership(user_id, org_id, session)

    if membership.role == OrgRole.OWNER.value:
        await ensure_owner_remains(org_id, user_id, session)

    membership.mark_deleted()
    session.add(membership)
    await session.flush()
    log.info("membership.removed", user_id=str(user_id), org_id=str(org_id))
