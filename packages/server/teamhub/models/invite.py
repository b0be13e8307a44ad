"""Membership invite model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, LifecycleMixin, UUIDMixin

GENERIC_VALID = sa.text("invited_email IS NULL AND invalidation_time IS NULL")


class MembershipInvite(UUIDMixin, CreatedAtMixin, LifecycleMixin, SQLModel, table=True):
    __tablename__ = "membership_invites"
    __table_args__ = (
        # At most one valid generic invite per organization.
        sa.Index(
            "uq_membership_invites_generic_valid",
            "organization_id",
            unique=True,
            postgresql_where=GENERIC_VALID,
            sqlite_where=GENERIC_VALID,
        ),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    role: str = Field(nullable=False, default="member")
    invalidation_time: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    invited_email: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.invalidation_time is None
