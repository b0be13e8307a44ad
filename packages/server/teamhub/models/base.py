"""Base mixins for SQLModel tables."""

from datetime import datetime, timezone
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel, select


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUIDMixin(SQLModel):
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        nullable=False,
    )


class CreatedAtMixin(SQLModel):
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("CURRENT_TIMESTAMP")},
        sa_type=sa.DateTime(timezone=True),
    )


class TimestampMixin(CreatedAtMixin):
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("CURRENT_TIMESTAMP"), "onupdate": utcnow},
        sa_type=sa.DateTime(timezone=True),
    )


class LifecycleMixin(SQLModel):
    """Soft-delete capability: active -> deleted, terminal.

    Reads compose from ``select_live``/``live_clause`` so a query cannot forget
    to exclude deleted rows.
    """

    deleted: bool = Field(
        default=False,
        nullable=False,
        sa_column_kwargs={"server_default": sa.false()},
    )

    @classmethod
    def live_clause(cls):
        return cls.deleted == False  # noqa: E712

    @classmethod
    def select_live(cls):
        return select(cls).where(cls.live_clause())

    def mark_deleted(self) -> None:
        self.deleted = True


# Partial-index predicate shared by every "unique among live rows" constraint.
LIVE_ROWS = sa.text("NOT deleted")
