"""
Membership manager: compound organization, membership, invite, settings and
SSO operations, each run as one transaction.

Every call takes an optional ``timeout`` in seconds. A timeout or a
cancellation rolls the whole transaction back before the error propagates.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamhub.core.database import transaction
from teamhub.core.errors import ConflictError, invalid_from_validation
from teamhub.core.locking import KeyedLocks, org_key, slug_key
from teamhub.models.invite import MembershipInvite
from teamhub.models.membership import Membership
from teamhub.models.oidc_client_config import OIDCClientConfig
from teamhub.models.org_settings import OrgSettings
from teamhub.models.organization import Organization
from teamhub.services import (
    invites,
    memberships,
    oidc_client_configs,
    org_settings,
    organizations,
    slugs,
)
from teamhub_shared.schemas.common import AddMemberResult, OrgRole, SortDirection
from teamhub_shared.schemas.oidc import OIDCClientConfigCreate
from teamhub_shared.schemas.organizations import MemberInfo, OrgSettingsUpdate

log = structlog.get_logger()

T = TypeVar("T")


class MembershipManager:
    """Entry point for the API layer."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._session_factory = session_factory
        self._locks = locks or KeyedLocks()

    async def _run(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        lock_keys: Iterable[str] = (),
        timeout: Optional[float] = None,
    ) -> T:
        async def unit() -> T:
            async with self._locks.hold(*lock_keys):
                async with transaction(self._session_factory) as session:
                    return await work(session)

        if timeout is None:
            return await unit()
        return await asyncio.wait_for(unit(), timeout)

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    async def create_organization(
        self, user_id: uuid.UUID, name: str, timeout: Optional[float] = None
    ) -> Organization:
        """Create an org with ``user_id`` as its sole owner."""
        return await self._run(
            lambda s: organizations.create_org(user_id, name, s),
            lock_keys=[slug_key(slugs.slugify(name or ""))],
            timeout=timeout,
        )

    async def update_organization(
        self,
        org_id: uuid.UUID,
        name: Optional[str] = None,
        slug: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Organization:
        keys = [org_key(org_id)]
        if slug and slug.strip():
            keys.append(slug_key(slug.strip()))
        return await self._run(
            lambda s: organizations.update_org(org_id, s, name=name, slug=slug),
            lock_keys=keys,
            timeout=timeout,
        )

    async def delete_organization(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> None:
        """Soft-delete the org together with its settings."""
        await self._run(
            lambda s: organizations.delete_org(org_id, s),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    async def get_organization(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> Organization:
        return await self._run(lambda s: organizations.get_org(org_id, s), timeout=timeout)

    async def get_organization_by_slug(
        self, org_slug: str, timeout: Optional[float] = None
    ) -> Organization:
        return await self._run(
            lambda s: organizations.get_org_by_slug(org_slug, s), timeout=timeout
        )

    async def find_organizations(
        self,
        offset: int = 0,
        limit: int = 50,
        order_by: str = "created_at",
        order_dir: SortDirection = SortDirection.DESC,
        search_term: str = "",
        include_deleted: bool = False,
        timeout: Optional[float] = None,
    ) -> tuple[int, list[Organization]]:
        return await self._run(
            lambda s: organizations.find_orgs(
                s,
                offset=offset,
                limit=limit,
                order_by=order_by,
                order_dir=order_dir,
                search_term=search_term,
                include_deleted=include_deleted,
            ),
            timeout=timeout,
        )

    async def get_organization_by_membership_id(
        self, membership_id: uuid.UUID, timeout: Optional[float] = None
    ) -> Optional[Organization]:
        return await self._run(
            lambda s: organizations.find_org_by_membership_id(membership_id, s),
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    async def list_organizations_for_user(
        self, user_id: uuid.UUID, timeout: Optional[float] = None
    ) -> list[Organization]:
        return await self._run(
            lambda s: memberships.list_user_orgs(user_id, s), timeout=timeout
        )

    async def find_sole_owned_organizations(
        self, user_id: uuid.UUID, timeout: Optional[float] = None
    ) -> list[Organization]:
        """Orgs that would be left ownerless if ``user_id`` went away."""
        return await self._run(
            lambda s: memberships.find_sole_owned_orgs(user_id, s), timeout=timeout
        )

    async def list_members(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> list[MemberInfo]:
        return await self._run(lambda s: memberships.list_members(org_id, s), timeout=timeout)

    async def get_membership(
        self, user_id: uuid.UUID, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> Optional[Membership]:
        return await self._run(
            lambda s: memberships.find_membership(user_id, org_id, s), timeout=timeout
        )

    async def join_organization(
        self,
        user_id: uuid.UUID,
        org_id: uuid.UUID,
        role: OrgRole = OrgRole.MEMBER,
        timeout: Optional[float] = None,
    ) -> AddMemberResult:
        return await self._run(
            lambda s: memberships.add_member(user_id, org_id, s, role=role),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    async def change_role(
        self,
        user_id: uuid.UUID,
        org_id: uuid.UUID,
        role: OrgRole,
        timeout: Optional[float] = None,
    ) -> Membership:
        return await self._run(
            lambda s: memberships.set_role(user_id, org_id, role, s),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    async def leave_organization(
        self, user_id: uuid.UUID, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> None:
        await self._run(
            lambda s: memberships.remove_member(user_id, org_id, s),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Invites
    # ------------------------------------------------------------------

    async def get_invite(
        self, invite_id: uuid.UUID, timeout: Optional[float] = None
    ) -> MembershipInvite:
        return await self._run(lambda s: invites.get_invite(invite_id, s), timeout=timeout)

    async def get_generic_invite(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> Optional[MembershipInvite]:
        return await self._run(
            lambda s: invites.find_generic_invite(org_id, s), timeout=timeout
        )

    async def reset_invite_link(
        self,
        org_id: uuid.UUID,
        role: OrgRole = OrgRole.MEMBER,
        timeout: Optional[float] = None,
    ) -> MembershipInvite:
        return await self._run(
            lambda s: invites.reset_generic_invite(org_id, s, role=role),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    async def accept_invite(
        self,
        invite_id: uuid.UUID,
        user_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> AddMemberResult:
        """Join the invite's org with the invite's role."""

        async def work(session: AsyncSession) -> AddMemberResult:
            invite = await invites.get_invite(invite_id, session)
            if not invite.is_valid:
                raise ConflictError("This invite has expired")
            return await memberships.add_member(
                user_id, invite.organization_id, session, role=invite.role
            )

        # The org id is only known once the invite is read, so the org lock is
        # taken from a first lookup.
        org_id = (await self.get_invite(invite_id, timeout=timeout)).organization_id
        return await self._run(work, lock_keys=[org_key(org_id)], timeout=timeout)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_org_settings(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> Optional[OrgSettings]:
        return await self._run(
            lambda s: org_settings.get_org_settings(org_id, s), timeout=timeout
        )

    async def update_org_settings(
        self,
        org_id: uuid.UUID,
        settings: Union[OrgSettingsUpdate, dict],
        timeout: Optional[float] = None,
    ) -> OrgSettings:
        return await self._run(
            lambda s: org_settings.set_org_settings(org_id, settings, s),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # SSO client configs
    # ------------------------------------------------------------------

    async def create_sso_config(
        self,
        req: Union[OIDCClientConfigCreate, dict],
        timeout: Optional[float] = None,
    ) -> OIDCClientConfig:
        try:
            req = OIDCClientConfigCreate.model_validate(req)
        except ValidationError as exc:
            raise invalid_from_validation(exc) from exc
        return await self._run(
            lambda s: oidc_client_configs.create_oidc_client_config(req, s),
            lock_keys=[org_key(req.organization_id)],
            timeout=timeout,
        )

    async def get_sso_config(
        self, config_id: uuid.UUID, timeout: Optional[float] = None
    ) -> OIDCClientConfig:
        return await self._run(
            lambda s: oidc_client_configs.get_oidc_client_config(config_id, s),
            timeout=timeout,
        )

    async def get_sso_config_for_organization(
        self,
        config_id: uuid.UUID,
        org_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> OIDCClientConfig:
        return await self._run(
            lambda s: oidc_client_configs.get_oidc_client_config_for_org(config_id, org_id, s),
            timeout=timeout,
        )

    async def list_sso_configs(
        self, org_id: uuid.UUID, timeout: Optional[float] = None
    ) -> list[OIDCClientConfig]:
        return await self._run(
            lambda s: oidc_client_configs.list_oidc_client_configs(org_id, s),
            timeout=timeout,
        )

    async def get_sso_config_by_slug(
        self, org_slug: str, timeout: Optional[float] = None
    ) -> OIDCClientConfig:
        return await self._run(
            lambda s: oidc_client_configs.get_oidc_client_config_by_org_slug(org_slug, s),
            timeout=timeout,
        )

    async def delete_sso_config(
        self,
        config_id: uuid.UUID,
        org_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> None:
        await self._run(
            lambda s: oidc_client_configs.delete_oidc_client_config(config_id, org_id, s),
            lock_keys=[org_key(org_id)],
            timeout=timeout,
        )

    async def activate_sso_config(
        self,
        config_id: uuid.UUID,
        org_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> OIDCClientConfig:
        """Make ``config_id`` the single active config of its org."""

        async def work(session: AsyncSession) -> OIDCClientConfig:
            config = await oidc_client_configs.get_oidc_client_config_for_org(
                config_id, org_id, session
            )
            deactivated = await oidc_client_configs.deactivate_others(
                config.id, org_id, session
            )
            config = await oidc_client_configs.activate_oidc_client_config(config.id, session)
            if deactivated:
                log.info(
                    "oidc_config.siblings_deactivated",
                    config_id=str(config_id),
                    org_id=str(org_id),
                    count=deactivated,
                )
            return config

        return await self._run(work, lock_keys=[org_key(org_id)], timeout=timeout)

    async def deactivate_sso_config(
        self,
        config_id: uuid.UUID,
        org_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> OIDCClientConfig:
        async def work(session: AsyncSession) -> OIDCClientConfig:
            await oidc_client_configs.get_oidc_client_config_for_org(config_id, org_id, session)
            return await oidc_client_configs.deactivate_oidc_client_config(config_id, session)

        return await self._run(work, lock_keys=[org_key(org_id)], timeout=timeout)

    async def org_with_sso_exists(self, timeout: Optional[float] = None) -> bool:
        return await self._run(oidc_client_configs.some_org_with_sso_exists, timeout=timeout)
