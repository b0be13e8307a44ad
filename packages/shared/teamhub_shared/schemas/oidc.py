"""SSO (OIDC) client configuration schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OIDCSpec(BaseModel):
    """Sealed payload of an OIDC client config.

    Serialized with camelCase keys so stored blobs stay stable across renames.
    """

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field("", alias="clientId")
    client_secret: str = Field("", alias="clientSecret")
    redirect_url: str = Field("", alias="redirectUrl")
    scopes: list[str] = Field(default_factory=list)


class OIDCClientConfigCreate(BaseModel):
    id: Optional[uuid.UUID] = None
    organization_id: uuid.UUID
    issuer: str = Field("", max_length=255)
    spec: OIDCSpec = Field(default_factory=OIDCSpec)


class OIDCClientConfigResponse(BaseModel):
    """Config as exposed to callers; the client secret is never included."""

    id: uuid.UUID
    organization_id: uuid.UUID
    issuer: str
    active: bool
    last_modified: datetime
    client_id: str = ""
    redirect_url: str = ""
    scopes: list[str] = []
