"""Tests for the per-organization settings store."""

from __future__ import annotations

import uuid

import pytest

from teamhub.core.errors import InvalidArgumentError, NotFoundError
from teamhub.services import org_settings, organizations
from teamhub_shared.schemas.organizations import OrgSettingsUpdate


@pytest.fixture
async def org(db_session):
    return await organizations.create_org(uuid.uuid4(), "Acme", db_session)


@pytest.mark.asyncio
async def test_absent_until_first_write(db_session, org):
    assert await org_settings.get_org_settings(org.id, db_session) is None


@pytest.mark.asyncio
async def test_first_write_inserts(db_session, org):
    row = await org_settings.set_org_settings(
        org.id, OrgSettingsUpdate(workspace_sharing_disabled=True), db_session
    )
    assert row.organization_id == org.id
    assert row.workspace_sharing_disabled is True
    assert (await org_settings.get_org_settings(org.id, db_session)) is row


@pytest.mark.asyncio
async def test_partial_update_keeps_unset_fields(db_session, org):
    await org_settings.set_org_settings(
        org.id, {"workspace_sharing_disabled": True}, db_session
    )
    row = await org_settings.set_org_settings(org.id, {}, db_session)
    assert row.workspace_sharing_disabled is True

    row = await org_settings.set_org_settings(
        org.id, {"workspace_sharing_disabled": False}, db_session
    )
    assert row.workspace_sharing_disabled is False


@pytest.mark.asyncio
async def test_unknown_fields_rejected(db_session, org):
    with pytest.raises(InvalidArgumentError):
        await org_settings.set_org_settings(org.id, {"theme": "dark"}, db_session)


@pytest.mark.asyncio
async def test_requires_live_org(db_session):
    with pytest.raises(NotFoundError):
        await org_settings.set_org_settings(
            uuid.uuid4(), {"workspace_sharing_disabled": True}, db_session
        )


@pytest.mark.asyncio
async def test_delete_is_idempotent(db_session, org):
    await org_settings.delete_org_settings(org.id, db_session)
    await org_settings.set_org_settings(org.id, {"workspace_sharing_disabled": True}, db_session)
    await org_settings.delete_org_settings(org.id, db_session)
    await org_settings.delete_org_settings(org.id, db_session)
    assert await org_settings.get_org_settings(org.id, db_session) is None
