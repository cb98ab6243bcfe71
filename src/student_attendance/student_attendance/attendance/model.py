from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..students.model import StudentSummary


@dataclass(frozen=True)
class MarkEntry:
    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class NewAttendance:
    student_id: int
    year: int
    branch: str
    att_date: date
    status: AttendanceStatus
    marked_by: int


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status on one calendar day.

    ``year`` and ``branch`` are those of the cohort the record was marked
    under; later edits to the student do not move it.
    """

    attendance_id: int
    student_id: int
    year: int
    branch: str
    att_date: date
    status: AttendanceStatus
    marked_by: int
    updated_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "student": self.student.to_dict() if self.student else self.student_id,
            "year": self.year,
            "branch": self.branch,
            "date": self.att_date.isoformat(),
            "status": self.status.value,
            "markedBy": self.marked_by,
            "updatedBy": self.updated_by,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class AttendanceFilter:
    year: Optional[int] = None
    branch: Optional[str] = None
    att_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None


@dataclass(frozen=True)
class StatusCount:
    """Read-model row: records per (date, status) for one cohort."""

    att_date: date
    status: AttendanceStatus
    count: int


@dataclass(frozen=True)
class DailyStatistics:
    att_date: date
    counts: dict[AttendanceStatus, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> dict:
        return {
            "date": self.att_date.isoformat(),
            "statuses": [{"status": s.value, "count": n} for s, n in self.counts.items()],
            "totalStudents": self.total,
        }


@dataclass(frozen=True)
class MarkingActivity:
    """Read-model row: what one staff account did to one cohort day."""

    user_id: int
    year: int
    branch: str
    att_date: date
    marked: int = 0
    updated: int = 0
