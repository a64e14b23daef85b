# src/mysociety/models/user.py
"""SQLAlchemy models for login accounts and the residents they belong to."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mysociety.db.session import Base


class UserRole(str, Enum):
    """Closed set of account roles."""

    ADMIN = "ADMIN"
    RESIDENT = "RESIDENT"


class Resident(Base):
    """A household of the managed property, addressed by flat number."""

    __tablename__ = "resident"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    flat_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)


class User(Base):
    """Login account; residents carry the id of the household they act for."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    # Stored as a digest, never as the submitted password.
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, native_enum=False, length=16),
        nullable=False,
    )
    # Null for admins.
    resident_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("resident.id"),
        nullable=True,
        unique=True,
    )

    resident: Mapped[Resident | None] = relationship(lazy="joined")

    @property
    def is_admin(self) -> bool:
        """Return True for administrator accounts."""
        return self.role is UserRole.ADMIN
