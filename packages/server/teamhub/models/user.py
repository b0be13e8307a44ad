"""User model (display data joined into member listings)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class User(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    name: str = Field(nullable=False)
    full_name: Optional[str] = None
    email: Optional[str] = Field(default=None, unique=True, index=True)
    avatar_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.name
