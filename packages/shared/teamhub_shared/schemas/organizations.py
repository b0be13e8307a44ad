"""
Organization-related Pydantic schemas shared between the library and API layers.

Covers: org create/rename requests, org and member responses, org settings,
membership invites.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import OrgRole

NAME_MAX_LENGTH = 64
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 63
SLUG_PATTERN = r"^[A-Za-z0-9-]+$"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

def _printable_name(value: Optional[str]) -> Optional[str]:
    if value is not None and not all(ch.isprintable() for ch in value):
        raise ValueError("Name may only contain printable characters")
    return value


class OrgCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=3,
        max_length=NAME_MAX_LENGTH,
        description="Organization display name",
    )

    @field_validator("name")
    @classmethod
    def name_is_printable(cls, v):
        return _printable_name(v)


class OrgUpdateRequest(BaseModel):
    """Rename and/or reslug. Blank values count as not supplied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    slug: Optional[str] = Field(
        None,
        max_length=SLUG_MAX_LENGTH,
        description="URL-safe org identifier",
    )

    @field_validator("name")
    @classmethod
    def name_is_printable(cls, v):
        return _printable_name(v)


class OrgSlug(BaseModel):
    slug: str = Field(
        ...,
        min_length=SLUG_MIN_LENGTH,
        max_length=SLUG_MAX_LENGTH,
        pattern=SLUG_PATTERN,
    )


class OrgSettingsUpdate(BaseModel):
    """Partial settings update; only fields explicitly set are written."""

    model_config = ConfigDict(extra="forbid")

    workspace_sharing_disabled: Optional[bool] = Field(
        None,
        description="Disallow sharing running workspaces outside the org",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrgListPage(BaseModel):
    total: int
    rows: list[OrgResponse]


class MemberInfo(BaseModel):
    user_id: uuid.UUID
    full_name: Optional[str] = None
    primary_email: Optional[str] = None
    avatar_url: Optional[str] = None
    role: OrgRole
    member_since: datetime


class OrgSettingsResponse(BaseModel):
    organization_id: uuid.UUID
    workspace_sharing_disabled: bool = False

    model_config = ConfigDict(from_attributes=True)


class InviteResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    role: OrgRole
    created_at: datetime
    invalidation_time: Optional[datetime] = None
    invited_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
