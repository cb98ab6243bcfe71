from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..common.validators import FieldErrors, parse_int, parse_status
from ..core.constants import UQ_ATTENDANCE_STUDENT_DATE, UQ_SESSION_COHORT_DATE
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyMarkedError, UniqueConstraintError, ValidationError
from ..students.repository import StudentRepository
from .model import AttendanceFilter, AttendanceRecord, DailyStatistics, MarkEntry, NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_entries(raw: Any) -> list[tuple[Optional[int], AttendanceStatus]]:
    """Validate ``[{studentId, status}, ...]``.

    A bad status fails the whole batch. A student id that is not an integer
    parses to None and is later treated like an unknown student.
    """

    if not isinstance(raw, list):
        raise ValidationError(
            "Attendance data must be a list",
            [{"field": "attendanceData", "message": "Attendance data must be a list"}],
        )

    errors = FieldErrors()
    out: list[tuple[Optional[int], AttendanceStatus]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.add(f"attendanceData[{i}]", "Entry must be an object")
            continue
        try:
            status = parse_status(item.get("status"), f"attendanceData[{i}].status")
        except ValidationError as e:
            errors.extend(e.errors)
            continue
        out.append((parse_int(item.get("studentId")), status))
    errors.raise_if_any("Invalid attendance data")
    return out


def check_range(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and start > end:
        raise ValidationError("startDate must not be after endDate", [{"field": "startDate", "message": "Must not be after endDate"}])


class AttendanceService:
    """The attendance ledger: one status per (student, day).

    A (year, branch, day) cohort is marked once, all at once, and afterwards
    only has statuses changed. Every method takes the day(s) it works on from
    the caller; nothing here reads the clock.
    """

    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    def mark_cohort(
        self,
        *,
        year: int,
        branch: str,
        day: date,
        entries: Any,
        actor_id: int,
    ) -> Sequence[AttendanceRecord]:
        parsed = parse_entries(entries)

        if self._attendance.cohort_marked(year=year, branch=branch, att_date=day):
            raise AlreadyMarkedError()

        known = self._students.existing_ids([sid for sid, _ in parsed if sid is not None])
        records: list[NewAttendance] = []
        seen: set[int] = set()
        for student_id, status in parsed:
            if student_id is None or student_id not in known:
                continue
            if student_id in seen:
                raise ValidationError(
                    "Duplicate student in attendance data",
                    [{"field": "attendanceData", "message": f"Student {student_id} appears more than once"}],
                )
            seen.add(student_id)
            records.append(
                NewAttendance(
                    student_id=student_id,
                    year=year,
                    branch=branch,
                    att_date=day,
                    status=status,
                    marked_by=actor_id,
                )
            )

        if not records:
            return []

        try:
            saved = self._attendance.insert_cohort(
                year=year, branch=branch, att_date=day, marked_by=actor_id, records=records
            )
        except UniqueConstraintError as e:
            if e.constraint in (UQ_SESSION_COHORT_DATE, UQ_ATTENDANCE_STUDENT_DATE):
                raise AlreadyMarkedError() from e
            raise

        logger.info("Marked %s year %s on %s: %d records by user %s", branch, year, day, len(saved), actor_id)
        return saved

    def update_cohort(
        self,
        *,
        year: int,
        branch: str,
        day: date,
        entries: Any,
        actor_id: int,
        now: datetime,
    ) -> int:
        """Change statuses of already-marked records. Never creates records."""

        parsed = parse_entries(entries)
        updates = [MarkEntry(student_id=sid, status=status) for sid, status in parsed if sid is not None]
        if not updates:
            return 0

        modified = self._attendance.update_statuses(
            year=year, branch=branch, att_date=day, entries=updates, updated_by=actor_id, updated_at=now
        )
        logger.info("Updated %s year %s on %s: %d records by user %s", branch, year, day, modified, actor_id)
        return modified

    def cohort_day(self, *, year: int, branch: str, day: date) -> Sequence[AttendanceRecord]:
        return self._attendance.list_cohort_day(year=year, branch=branch, att_date=day)

    def statistics_for(
        self,
        *,
        year: int,
        branch: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[DailyStatistics]:
        """One row per marked date, newest first, with counts per status."""

        check_range(start, end)
        by_date: dict[date, dict[AttendanceStatus, int]] = {}
        for row in self._attendance.status_counts(year=year, branch=branch, start=start, end=end):
            counts = by_date.setdefault(row.att_date, {})
            counts[row.status] = counts.get(row.status, 0) + row.count

        order = list(AttendanceStatus)
        return [
            DailyStatistics(
                att_date=d,
                counts={s: by_date[d][s] for s in sorted(by_date[d], key=order.index)},
            )
            for d in sorted(by_date, reverse=True)
        ]

    def history_for(
        self,
        *,
        student_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        check_range(start, end)
        rows = self._attendance.history(student_id=student_id, start=start, end=end)
        return sorted(rows, key=lambda r: r.att_date, reverse=True)

    def todays_attendance(self, *, today: date) -> Sequence[AttendanceRecord]:
        return self._attendance.for_day(today)

    def search(self, flt: AttendanceFilter, *, page: PageRequest) -> Page[AttendanceRecord]:
        items = self._attendance.search(flt, offset=page.offset, limit=page.limit)
        return Page(items=items, total=self._attendance.count(flt), request=page)
