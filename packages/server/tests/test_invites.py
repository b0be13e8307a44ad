"""Tests for generic invite links."""

from __future__ import annotations

import uuid

import pytest

from teamhub.core.errors import InvalidArgumentError, NotFoundError
from teamhub.models.invite import MembershipInvite
from teamhub.services import invites, organizations
from teamhub_shared.schemas.common import OrgRole


@pytest.fixture
async def org(db_session):
    return await organizations.create_org(uuid.uuid4(), "Acme", db_session)


@pytest.mark.asyncio
async def test_no_generic_invite_before_first_reset(db_session, org):
    assert await invites.find_generic_invite(org.id, db_session) is None


@pytest.mark.asyncio
async def test_reset_issues_valid_member_invite(db_session, org):
    invite = await invites.reset_generic_invite(org.id, db_session)
    assert invite.organization_id == org.id
    assert invite.role == "member"
    assert invite.invalidation_time is None
    assert invite.invited_email is None
    assert (await invites.find_generic_invite(org.id, db_session)).id == invite.id


@pytest.mark.asyncio
async def test_repeated_resets_leave_exactly_one_valid_invite(db_session, org):
    org_id = org.id
    issued = [await invites.reset_generic_invite(org_id, db_session) for _ in range(4)]
    issued_ids = [i.id for i in issued]
    assert len(set(issued_ids)) == 4

    db_session.expire_all()
    rows = await invites.list_invites(org_id, db_session)
    by_id = {row.id: row for row in rows}
    assert len(rows) == 4

    valid = [row for row in rows if row.invalidation_time is None]
    assert [row.id for row in valid] == [issued_ids[-1]]

    for previous, following in zip(issued_ids, issued_ids[1:]):
        old = by_id[previous]
        assert old.invalidation_time is not None
        assert old.invalidation_time <= by_id[following].created_at


@pytest.mark.asyncio
async def test_invalidated_invite_is_still_retrievable(db_session, org):
    first = await invites.reset_generic_invite(org.id, db_session)
    await invites.reset_generic_invite(org.id, db_session)

    fetched = await invites.get_invite(first.id, db_session)
    assert fetched.id == first.id
    assert not fetched.is_valid


@pytest.mark.asyncio
async def test_unknown_invite(db_session):
    with pytest.raises(NotFoundError):
        await invites.get_invite(uuid.uuid4(), db_session)


@pytest.mark.asyncio
async def test_email_invites_are_not_generic(db_session, org):
    db_session.add(
        MembershipInvite(organization_id=org.id, role="member", invited_email="x@example.com")
    )
    await db_session.flush()
    assert await invites.find_generic_invite(org.id, db_session) is None

    invite = await invites.reset_generic_invite(org.id, db_session, role=OrgRole.OWNER)
    assert invite.role == "owner"
    assert (await invites.find_generic_invite(org.id, db_session)).id == invite.id


@pytest.mark.asyncio
async def test_reset_requires_live_org(db_session, org):
    await organizations.delete_org(org.id, db_session)
    with pytest.raises(NotFoundError):
        await invites.reset_generic_invite(org.id, db_session)


@pytest.mark.asyncio
async def test_reset_rejects_unknown_role(db_session, org):
    with pytest.raises(InvalidArgumentError):
        await invites.reset_generic_invite(org.id, db_session, role="guest")
