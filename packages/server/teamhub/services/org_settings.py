"""
Org settings store: one lazily created settings row per organization.
"""

from __future__ import annotations

import uuid
from typing import Optional, Union

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.core.errors import NotFoundError, invalid_from_validation
from teamhub.models.org_settings import OrgSettings
from teamhub.models.organization import Organization
from teamhub_shared.schemas.organizations import OrgSettingsUpdate

log = structlog.get_logger()


async def get_org_settings(
    org_id: uuid.UUID, session: AsyncSession
) -> Optional[OrgSettings]:
    """Return the live settings row, or None if never written."""
    result = await session.execute(
        OrgSettings.select_live().where(OrgSettings.organization_id == org_id)
    )
    return result.scalar_one_or_none()


async def set_org_settings(
    org_id: uuid.UUID,
    settings: Union[OrgSettingsUpdate, dict],
    session: AsyncSession,
) -> OrgSettings:
    """Upsert settings; only fields present in ``settings`` are changed."""
    try:
        update = OrgSettingsUpdate.model_validate(settings)
    except ValidationError as exc:
        raise invalid_from_validation(exc) from exc
    changes = update.model_dump(exclude_unset=True)

    org = await session.execute(
        Organization.select_live().where(Organization.id == org_id)
    )
    if org.scalar_one_or_none() is None:
        raise NotFoundError("Organization", org_id)

    row = await get_org_settings(org_id, session)
    if row is None:
        row = OrgSettings(organization_id=org_id)
    for key, value in changes.items():
        if value is not None:
            setattr(row, key, value)

    session.add(row)
    await session.flush()

    log.info("org_settings.updated", org_id=str(org_id), fields=sorted(changes))
    return row


async def delete_org_settings(org_id: uuid.UUID, session: AsyncSession) -> None:
    """Soft-delete the settings row; no-op if already deleted or never created."""
    row = await get_org_settings(org_id, session)
    if row is None:
        return
    row.mark_deleted()
    session.add(row)
    await session.flush()
    log.info("org_settings.deleted", org_id=str(org_id))
