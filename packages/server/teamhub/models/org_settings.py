"""Per-organization settings (one row per org, created lazily)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import LifecycleMixin, utcnow


class OrgSettings(LifecycleMixin, SQLModel, table=True):
    __tablename__ = "org_settings"

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True)
    workspace_sharing_disabled: bool = Field(
        default=False,
        nullable=False,
        sa_column_kwargs={"server_default": sa.false()},
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"onupdate": utcnow},
        sa_type=sa.DateTime(timezone=True),
    )
