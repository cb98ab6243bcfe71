from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.service import check_range
from ..common.datetime_utils import month_bounds
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError
from ..students.repository import ORDER_YEAR_ROLL, StudentRepository


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent

    @property
    def rate(self) -> float:
        """Percentage present, two decimals; 0 when nothing was recorded."""
        return round(self.present * 100 / self.total, 2) if self.total else 0

    def to_dict(self) -> dict:
        return {
            "totalRecords": self.total,
            "present": self.present,
            "absent": self.absent,
            "attendanceRate": self.rate,
        }


def summarize(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    present = absent = 0
    for r in records:
        if r.status == AttendanceStatus.PRESENT:
            present += 1
        else:
            absent += 1
    return AttendanceSummary(present=present, absent=absent)


def resolve_range(start: Optional[date], end: Optional[date], *, today: date) -> tuple[date, date]:
    """Missing bounds default to the last DEFAULT_REPORT_DAYS days ending today."""

    start = start or today - timedelta(days=DEFAULT_REPORT_DAYS)
    end = end or today
    check_range(start, end)
    return start, end


def _range_dict(start: date, end: date) -> dict:
    return {"start": start.isoformat(), "end": end.isoformat()}


class ReportService:
    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    def dashboard(self, *, today: date) -> dict:
        today_summary = summarize(self._attendance.for_day(today))
        month_start, _ = month_bounds(today)
        month_rows = self._attendance.report_rows(start=month_start, end=today)

        by_branch: dict[str, list[AttendanceRecord]] = defaultdict(list)
        for r in month_rows:
            by_branch[r.branch].append(r)

        return {
            "today": {
                "present": today_summary.present,
                "absent": today_summary.absent,
                "marked": today_summary.total,
                "totalStudents": self._students.count_active(),
            },
            "thisMonth": summarize(month_rows).to_dict(),
            "branchStats": [{"branch": b, **summarize(by_branch[b]).to_dict()} for b in sorted(by_branch)],
        }

    def attendance_report(
        self,
        *,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        student_id: Optional[int] = None,
    ) -> dict:
        start, end = resolve_range(start, end, today=today)
        rows = self._attendance.report_rows(start=start, end=end, branch=branch, year=year, student_id=student_id)
        return {
            "attendance": [r.to_dict() for r in rows],
            "summary": summarize(rows).to_dict(),
            "dateRange": _range_dict(start, end),
        }

    def student_report(
        self,
        *,
        student_id: int,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        student = self._students.get_by_id(student_id)
        if not student or not student.is_active:
            raise NotFoundError("Student not found")

        start, end = resolve_range(start, end, today=today)
        rows = self._attendance.report_rows(start=start, end=end, student_id=student_id)
        summary = summarize(rows)
        return {
            "student": student.to_dict(),
            "attendance": [r.to_dict() for r in rows],
            "summary": {
                "totalDays": summary.total,
                "present": summary.present,
                "absent": summary.absent,
                "attendancePercentage": summary.rate,
            },
            "dateRange": _range_dict(start, end),
        }

    def branch_report(
        self,
        *,
        branch: str,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        start, end = resolve_range(start, end, today=today)
        students = self._students.list_active(branch=branch, order_by=ORDER_YEAR_ROLL)
        rows = self._attendance.report_rows(start=start, end=end, branch=branch)
        return {
            "branch": branch,
            "students": [s.to_dict() for s in students],
            "attendance": [r.to_dict() for r in rows],
            "summary": {"totalStudents": len(students), **summarize(rows).to_dict()},
            "dateRange": _range_dict(start, end),
        }
