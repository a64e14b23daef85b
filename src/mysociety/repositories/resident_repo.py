"""Resident directory lookups used by the messaging services."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from mysociety.models.user import Resident, User

__all__ = ["ResidentDirectory"]


class ResidentDirectory:
    """Read-only view over residents and the accounts linked to them."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def exists_resident(self, resident_id: int) -> bool:
        """Return True when a resident with this id exists."""
        return self.session.get(Resident, resident_id) is not None

    def get_by_flat_number(self, flat_number: str) -> Resident | None:
        """Return the resident living in a flat, if any."""
        result = self.session.execute(
            select(Resident).where(Resident.flat_number == flat_number)
        )
        return result.scalars().first()

    def resident_id_for_user(self, user_id: int) -> int | None:
        """Return the resident id an account acts for, or None for admins."""
        user = self.session.get(User, user_id)
        if user is None:
            return None
        return user.resident_id

    def get_user(self, user_id: int) -> User | None:
        """Return an account by primary key."""
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        """Return an account by login name."""
        result = self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()

