"""User-Organization membership."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import LIVE_ROWS, CreatedAtMixin, LifecycleMixin, UUIDMixin


class Membership(UUIDMixin, CreatedAtMixin, LifecycleMixin, SQLModel, table=True):
    __tablename__ = "memberships"
    __table_args__ = (
        sa.Index(
            "uq_memberships_org_user_live",
            "organization_id",
            "user_id",
            unique=True,
            postgresql_where=LIVE_ROWS,
            sqlite_where=LIVE_ROWS,
        ),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    role: str = Field(nullable=False, default="member")  # owner | member
