from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for staff accounts.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_active(
        self,
        *,
        department: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[User]:
        """Sorted by full name."""

        raise NotImplementedError

    def count_active(self, *, department: Optional[str] = None) -> int:
        raise NotImplementedError

    def distinct_departments(self) -> Sequence[str]:
        raise NotImplementedError
