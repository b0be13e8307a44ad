"""Organization model."""

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import LIVE_ROWS, LifecycleMixin, TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, LifecycleMixin, SQLModel, table=True):
    __tablename__ = "organizations"
    __table_args__ = (
        sa.Index(
            "uq_organizations_slug_live",
            sa.text("lower(slug)"),
            unique=True,
            postgresql_where=LIVE_ROWS,
            sqlite_where=LIVE_ROWS,
        ),
    )

    name: str = Field(nullable=False, max_length=64)
    slug: str = Field(nullable=False, max_length=63)
