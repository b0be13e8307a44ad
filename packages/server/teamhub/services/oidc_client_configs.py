"""
SSO client config store: OIDC relying-party registrations per organization.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from teamhub.core.encryption import decrypt_json, encrypt_json
from teamhub.core.errors import InvalidArgumentError, NotFoundError, invalid_from_validation
from teamhub.models.oidc_client_config import OIDCClientConfig
from teamhub.models.organization import Organization
from teamhub_shared.schemas.oidc import (
    OIDCClientConfigCreate,
    OIDCClientConfigResponse,
    OIDCSpec,
)

log = structlog.get_logger()


NIL_UUID = uuid.UUID(int=0)


def _require(value, name: str) -> None:
    if not value or value == NIL_UUID:
        raise InvalidArgumentError(f"{name} is a required argument")


def decrypt_spec(config: OIDCClientConfig) -> OIDCSpec:
    """Open the sealed client id/secret/redirect/scopes payload."""
    return OIDCSpec.model_validate(decrypt_json(config.data))


def to_response(config: OIDCClientConfig) -> OIDCClientConfigResponse:
    spec = decrypt_spec(config)
    return OIDCClientConfigResponse(
        id=config.id,
        organization_id=config.organization_id,
        issuer=config.issuer,
        active=config.active,
        last_modified=config.last_modified,
        client_id=spec.client_id,
        redirect_url=spec.redirect_url,
        scopes=spec.scopes,
    )


async def create_oidc_client_config(
    req: OIDCClientConfigCreate | dict, session: AsyncSession
) -> OIDCClientConfig:
    """Insert a new, inactive config. The caller assigns the id."""
    try:
        req = OIDCClientConfigCreate.model_validate(req)
    except ValidationError as exc:
        raise invalid_from_validation(exc) from exc
    if req.id is None or req.id == NIL_UUID:
        raise InvalidArgumentError("id must be set")
    if not req.issuer.strip():
        raise InvalidArgumentError("issuer must be set")

    org = await session.execute(
        select(Organization.id).where(
            Organization.id == req.organization_id, Organization.live_clause()
        )
    )
    if org.first() is None:
        raise NotFoundError("Organization", req.organization_id)

    config = OIDCClientConfig(
        id=req.id,
        organization_id=req.organization_id,
        issuer=req.issuer.strip(),
        data=encrypt_json(req.spec.model_dump(by_alias=True)),
        active=False,
    )
    session.add(config)
    await session.flush()

    log.info("oidc_config.created", config_id=str(config.id), org_id=str(config.organization_id))
    return config


async def get_oidc_client_config(
    config_id: uuid.UUID, session: AsyncSession
) -> OIDCClientConfig:
    _require(config_id, "OIDC client config ID")
    result = await session.execute(
        OIDCClientConfig.select_live().where(OIDCClientConfig.id == config_id)
    )
    config = result.scalar_one_or_none()
    if not config:
        raise NotFoundError("OIDC client config", config_id)
    return config


async def get_oidc_client_config_for_org(
    config_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> OIDCClientConfig:
    """Like ``get_oidc_client_config`` but only matches a config of ``org_id``."""
    _require(config_id, "OIDC client config ID")
    _require(org_id, "Organization ID")
    result = await session.execute(
        OIDCClientConfig.select_live().where(
            OIDCClientConfig.id == config_id,
            OIDCClientConfig.organization_id == org_id,
        )
    )
    config = result.scalar_one_or_none()
    if not config:
        raise NotFoundError(
            "OIDC client config",
            config_id,
            f"OIDC client config '{config_id}' for organization '{org_id}' not found",
        )
    return config


async def list_oidc_client_configs(
    org_id: uuid.UUID, session: AsyncSession
) -> list[OIDCClientConfig]:
    _require(org_id, "Organization ID")
    result = await session.execute(
        OIDCClientConfig.select_live()
        .where(OIDCClientConfig.organization_id == org_id)
        .order_by(OIDCClientConfig.id)
    )
    return list(result.scalars().all())


async def get_oidc_client_config_by_org_slug(
    org_slug: str, session: AsyncSession
) -> OIDCClientConfig:
    """Resolve a live org's config by slug, preferring the active one."""
    _require(org_slug, "slug")
    result = await session.execute(
        OIDCClientConfig.select_live()
        .join(Organization, Organization.id == OIDCClientConfig.organization_id)
        .where(func.lower(Organization.slug) == org_slug.lower(), Organization.live_clause())
        .order_by(OIDCClientConfig.active.desc(), OIDCClientConfig.id)
        .limit(1)
    )
    config = result.scalar_one_or_none()
    if not config:
        raise NotFoundError(
            "OIDC client config",
            org_slug,
            f"No OIDC client config for organization '{org_slug}'",
        )
    return config


async def delete_oidc_client_config(
    config_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> None:
    """Soft-delete a config; only matches when it belongs to ``org_id``."""
    config = await get_oidc_client_config_for_org(config_id, org_id, session)
    config.mark_deleted()
    config.last_modified = datetime.now(timezone.utc)
    session.add(config)
    await session.flush()
    log.info("oidc_config.deleted", config_id=str(config_id), org_id=str(org_id))


async def set_active(
    config_id: uuid.UUID, active: bool, session: AsyncSession
) -> OIDCClientConfig:
    """Flip the activation flag of a single live config."""
    config = await get_oidc_client_config(config_id, session)
    if config.active != active:
        config.active = active
        config.last_modified = datetime.now(timezone.utc)
        session.add(config)
        await session.flush()
    log.info(
        "oidc_config.activated" if active else "oidc_config.deactivated",
        config_id=str(config_id),
        org_id=str(config.organization_id),
    )
    return config


async def deactivate_others(
    config_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> int:
    """Deactivate every other live config of ``org_id``. Returns the count."""
    result = await session.execute(
        update(OIDCClientConfig)
        .where(
            OIDCClientConfig.organization_id == org_id,
            OIDCClientConfig.id != config_id,
            OIDCClientConfig.active == True,  # noqa: E712
            OIDCClientConfig.live_clause(),
        )
        .values(active=False, last_modified=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def some_org_with_sso_exists(session: AsyncSession) -> bool:
    """True when any live organization has a live config."""
    result = await session.execute(
        select(Organization.id)
        .join(OIDCClientConfig, OIDCClientConfig.organization_id == Organization.id)
        .where(Organization.live_clause(), OIDCClientConfig.live_clause())
        .limit(1)
    )
    return result.first() is not None


async def activate_oidc_client_config(
    config_id: uuid.UUID, session: AsyncSession
) -> OIDCClientConfig:
    """Mark one config active. Sibling configs are left untouched."""
    return await set_active(config_id, True, session)


async def deactivate_oidc_client_config(
    config_id: uuid.UUID, session: AsyncSession
) -> OIDCClientConfig:
    return await set_active(config_id, False, session)
