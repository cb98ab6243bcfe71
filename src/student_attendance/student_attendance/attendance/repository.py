from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from .model import AttendanceFilter, AttendanceRecord, MarkEntry, MarkingActivity, NewAttendance, StatusCount


class AttendanceRepository(Protocol):
    """Repository interface for the attendance ledger.

    Storage keeps at most one record per (student, date) and one marked
    session per (year, branch, date); ``insert_cohort`` raises
    UniqueConstraintError when either is already taken.
    """

    def cohort_marked(self, *, year: int, branch: str, att_date: date) -> bool:
        raise NotImplementedError

    def insert_cohort(
        self,
        *,
        year: int,
        branch: str,
        att_date: date,
        marked_by: int,
        records: Sequence[NewAttendance],
    ) -> Sequence[AttendanceRecord]:
        """Write the cohort's session row and all its records in one transaction."""

        raise NotImplementedError

    def update_statuses(
        self,
        *,
        year: int,
        branch: str,
        att_date: date,
        entries: Sequence[MarkEntry],
        updated_by: int,
        updated_at: datetime,
    ) -> int:
        """Change statuses of existing records only. Returns how many rows changed."""

        raise NotImplementedError

    def list_cohort_day(self, *, year: int, branch: str, att_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def status_counts(
        self,
        *,
        year: int,
        branch: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[StatusCount]:
        raise NotImplementedError

    def history(
        self,
        *,
        student_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def for_day(self, att_date: date) -> Sequence[AttendanceRecord]:
        """Ordered by the student's branch, year and roll number."""

        raise NotImplementedError

    def search(self, flt: AttendanceFilter, *, offset: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count(self, flt: AttendanceFilter) -> int:
        raise NotImplementedError

    def report_rows(
        self,
        *,
        start: date,
        end: date,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def activity_rows(
        self,
        *,
        start: date,
        end: date,
        user_ids: Optional[Collection[int]] = None,
    ) -> Sequence[MarkingActivity]:
        raise NotImplementedError
