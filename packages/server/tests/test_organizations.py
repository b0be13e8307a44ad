"""
Tests for the organization store.

Tests cover:
- Org creation (validation, slug allocation, owner membership)
- Rename / reslug
- Soft delete and the settings cascade
- Lookups and the admin listing
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from teamhub.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from teamhub.models.membership import Membership
from teamhub.models.org_settings import OrgSettings
from teamhub.models.organization import Organization
from teamhub.services import org_settings, organizations
from teamhub_shared.schemas.common import SortDirection


@pytest.fixture
def user_id():
    return uuid.uuid4()


class TestCreateOrg:
    @pytest.mark.asyncio
    async def test_creates_org_with_owner(self, db_session, user_id):
        org = await organizations.create_org(user_id, "  Acme  ", db_session)
        assert org.name == "Acme"
        assert org.slug == "acme"
        assert org.deleted is False

        result = await db_session.execute(
            select(Membership).where(Membership.organization_id == org.id)
        )
        members = result.scalars().all()
        assert len(members) == 1
        assert members[0].user_id == user_id
        assert members[0].role == "owner"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name", ["", "   ", "ab", "x" * 65, "Ac\x00\x07me\n", "Acme\tInc", "\x1b[31mred"]
    )
    async def test_rejects_bad_names(self, db_session, user_id, name):
        with pytest.raises(InvalidArgumentError):
            await organizations.create_org(user_id, name, db_session)

    @pytest.mark.asyncio
    async def test_rejects_name_without_slug_characters(self, db_session, user_id):
        with pytest.raises(InvalidArgumentError):
            await organizations.create_org(user_id, "#!?&", db_session)

    @pytest.mark.asyncio
    async def test_duplicate_name_gets_suffixed_slug(self, db_session, user_id):
        first = await organizations.create_org(user_id, "Acme", db_session)
        second = await organizations.create_org(uuid.uuid4(), "Acme", db_session)
        assert first.slug == "acme"
        assert second.slug.startswith("acme-")
        assert second.slug != first.slug


class TestUpdateOrg:
    @pytest.mark.asyncio
    async def test_requires_some_update(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        with pytest.raises(InvalidArgumentError):
            await organizations.update_org(org.id, db_session, name="  ", slug=None)

    @pytest.mark.asyncio
    async def test_rename_and_reslug(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        updated = await organizations.update_org(
            org.id, db_session, name="Acme Labs", slug="Acme-Labs"
        )
        assert updated.name == "Acme Labs"
        assert updated.slug == "Acme-Labs"

    @pytest.mark.asyncio
    async def test_noop_returns_existing_record(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        before = org.updated_at
        same = await organizations.update_org(org.id, db_session, name="Acme", slug="acme")
        assert same is org
        assert same.updated_at == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slug", ["ab", "has space", "under_score", "x" * 64])
    async def test_rejects_bad_slugs(self, db_session, user_id, slug):
        org = await organizations.create_org(user_id, "Acme", db_session)
        with pytest.raises(InvalidArgumentError):
            await organizations.update_org(org.id, db_session, slug=slug)

    @pytest.mark.asyncio
    async def test_rejects_taken_slug(self, db_session, user_id):
        await organizations.create_org(user_id, "Globex", db_session)
        org = await organizations.create_org(user_id, "Acme", db_session)
        with pytest.raises(ConflictError):
            await organizations.update_org(org.id, db_session, slug="globex")

    @pytest.mark.asyncio
    async def test_rejects_taken_slug_in_other_case(self, db_session, user_id):
        await organizations.create_org(user_id, "Acme", db_session)
        org = await organizations.create_org(user_id, "Globex", db_session)
        with pytest.raises(ConflictError):
            await organizations.update_org(org.id, db_session, slug="ACME")
        assert org.slug == "globex"

    @pytest.mark.asyncio
    async def test_recasing_own_slug(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        updated = await organizations.update_org(org.id, db_session, slug="ACME")
        assert updated.slug == "ACME"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Ac\x00me", "\x1b[31mred", "line\nbreak"])
    async def test_rejects_unprintable_names(self, db_session, user_id, name):
        org = await organizations.create_org(user_id, "Acme", db_session)
        with pytest.raises(InvalidArgumentError):
            await organizations.update_org(org.id, db_session, name=name)
        assert org.name == "Acme"

    @pytest.mark.asyncio
    async def test_missing_org(self, db_session):
        with pytest.raises(NotFoundError):
            await organizations.update_org(uuid.uuid4(), db_session, name="Nope")


class TestDeleteOrg:
    @pytest.mark.asyncio
    async def test_soft_delete_hides_org_but_keeps_row(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        await organizations.delete_org(org.id, db_session)

        with pytest.raises(NotFoundError):
            await organizations.get_org(org.id, db_session)
        with pytest.raises(NotFoundError):
            await organizations.get_org_by_slug("acme", db_session)

        row = (
            await db_session.execute(select(Organization).where(Organization.id == org.id))
        ).scalar_one()
        assert row.deleted is True

    @pytest.mark.asyncio
    async def test_slug_can_be_reclaimed(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        await organizations.delete_org(org.id, db_session)

        again = await organizations.create_org(user_id, "Acme", db_session)
        assert again.slug == "acme"
        assert again.id != org.id

    @pytest.mark.asyncio
    async def test_cascades_to_settings(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        await org_settings.set_org_settings(
            org.id, {"workspace_sharing_disabled": True}, db_session
        )
        await organizations.delete_org(org.id, db_session)

        assert await org_settings.get_org_settings(org.id, db_session) is None
        row = (
            await db_session.execute(
                select(OrgSettings).where(OrgSettings.organization_id == org.id)
            )
        ).scalar_one()
        assert row.deleted is True

    @pytest.mark.asyncio
    async def test_memberships_are_not_cascaded(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        await organizations.delete_org(org.id, db_session)

        result = await db_session.execute(
            Membership.select_live().where(Membership.organization_id == org.id)
        )
        assert len(result.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_deleting_twice_is_not_found(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        await organizations.delete_org(org.id, db_session)
        with pytest.raises(NotFoundError):
            await organizations.delete_org(org.id, db_session)


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_by_slug(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        assert (await organizations.get_org_by_slug("acme", db_session)).id == org.id
        assert (await organizations.get_org_by_slug("ACME", db_session)).id == org.id

    @pytest.mark.asyncio
    async def test_find_org_by_membership_id(self, db_session, user_id):
        org = await organizations.create_org(user_id, "Acme", db_session)
        membership = (
            await db_session.execute(
                select(Membership).where(Membership.organization_id == org.id)
            )
        ).scalar_one()

        found = await organizations.find_org_by_membership_id(membership.id, db_session)
        assert found.id == org.id
        assert await organizations.find_org_by_membership_id(uuid.uuid4(), db_session) is None

    @pytest.mark.asyncio
    async def test_find_orgs_search_and_paging(self, db_session, user_id):
        for name in ["Acme", "Acme Labs", "Globex", "Initech"]:
            await organizations.create_org(user_id, name, db_session)
        deleted = await organizations.create_org(user_id, "Acme Old", db_session)
        await organizations.delete_org(deleted.id, db_session)

        total, rows = await organizations.find_orgs(
            db_session, search_term="ACME", order_by="name", order_dir=SortDirection.ASC
        )
        assert total == 2
        assert [o.name for o in rows] == ["Acme", "Acme Labs"]

        total, rows = await organizations.find_orgs(
            db_session, search_term="acme", include_deleted=True, limit=1, offset=2,
            order_by="name", order_dir=SortDirection.ASC,
        )
        assert total == 3
        assert [o.name for o in rows] == ["Acme Old"]

    @pytest.mark.asyncio
    async def test_find_orgs_rejects_unknown_column(self, db_session):
        with pytest.raises(InvalidArgumentError):
            await organizations.find_orgs(db_session, order_by="deleted")
