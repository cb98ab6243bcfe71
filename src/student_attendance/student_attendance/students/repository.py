from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from .model import BranchYearCount, Student, StudentFields

# Orderings the listing queries understand.
ORDER_YEAR_BRANCH_ROLL = ("year", "branch", "roll_no")
ORDER_YEAR_ROLL = ("year", "roll_no")
ORDER_BRANCH_ROLL = ("branch", "roll_no")
ORDER_ROLL = ("roll_no",)


class StudentRepository(Protocol):
    """Repository interface for students.

    Writes raise UniqueConstraintError when the uid or the active
    (branch, year, roll_no, admission_year) tuple is already taken.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_uid(self, uid: str, *, include_inactive: bool = False) -> Optional[Student]:
        raise NotImplementedError

    def find_active_by_roll(
        self,
        *,
        branch: str,
        year: int,
        roll_no: int,
        admission_year: int,
        exclude_ids: Collection[int] = (),
    ) -> Optional[Student]:
        raise NotImplementedError

    def uid_exists(self, uid: str, *, exclude_ids: Collection[int] = ()) -> bool:
        """Whether any student, active or not, holds ``uid``."""

        raise NotImplementedError

    def existing_ids(self, student_ids: Collection[int]) -> set[int]:
        """Subset of ``student_ids`` that belong to active students."""
        raise NotImplementedError

    def create(self, *, uid: str, fields: StudentFields) -> Student:
        raise NotImplementedError

    def save_all(self, students: Sequence[Student]) -> int:
        """Persist field and uid changes of several students in one transaction."""

        raise NotImplementedError

    def list_active(
        self,
        *,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        order_by: Sequence[str] = ORDER_YEAR_BRANCH_ROLL,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Student]:
        raise NotImplementedError

    def count_active(self, *, branch: Optional[str] = None, year: Optional[int] = None) -> int:
        raise NotImplementedError

    def deactivate(self, student_id: int) -> bool:
        raise NotImplementedError

    def deactivate_where(self, *, branch: Optional[str] = None, year: Optional[int] = None) -> int:
        raise NotImplementedError

    def distinct_branches(self) -> Sequence[str]:
        raise NotImplementedError

    def count_by_branch_year(self) -> Sequence[BranchYearCount]:
        """Active students per (branch, year)."""

        raise NotImplementedError
