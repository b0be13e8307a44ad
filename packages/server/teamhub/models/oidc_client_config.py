"""SSO (OIDC) client configuration model."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import LifecycleMixin, utcnow


class OIDCClientConfig(LifecycleMixin, SQLModel, table=True):
    __tablename__ = "oidc_client_configs"

    # Assigned by the caller, never defaulted.
    id: uuid.UUID = Field(primary_key=True, nullable=False)
    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    issuer: str = Field(nullable=False, max_length=255)
    # Fernet-sealed JSON of OIDCSpec
    data: str = Field(nullable=False, sa_type=sa.Text)
    active: bool = Field(
        default=False,
        nullable=False,
        sa_column_kwargs={"server_default": sa.false()},
    )
    last_modified: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("CURRENT_TIMESTAMP"), "onupdate": utcnow},
        sa_type=sa.DateTime(timezone=True),
    )
