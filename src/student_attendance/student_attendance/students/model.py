from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class StudentFields:
    """Validated, user-editable student fields. The uid is derived from these."""

    student_name: str
    branch: str
    roll_no: int
    student_phone: str
    parent_phone: str
    year: int
    admission_year: int

    @property
    def roll_key(self) -> tuple[str, int, int, int]:
        return (self.branch, self.year, self.roll_no, self.admission_year)


@dataclass(frozen=True)
class Student:
    """Domain entity: a student. Plain data, no DB access."""

    student_id: int
    student_name: str
    uid: str
    branch: str
    roll_no: int
    student_phone: str
    parent_phone: str
    year: int
    admission_year: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def fields(self) -> StudentFields:
        return StudentFields(
            student_name=self.student_name,
            branch=self.branch,
            roll_no=self.roll_no,
            student_phone=self.student_phone,
            parent_phone=self.parent_phone,
            year=self.year,
            admission_year=self.admission_year,
        )

    def with_fields(self, fields: StudentFields, *, uid: str) -> "Student":
        return replace(
            self,
            uid=uid,
            student_name=fields.student_name,
            branch=fields.branch,
            roll_no=fields.roll_no,
            student_phone=fields.student_phone,
            parent_phone=fields.parent_phone,
            year=fields.year,
            admission_year=fields.admission_year,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "studentName": self.student_name,
            "uid": self.uid,
            "branch": self.branch,
            "rollNo": self.roll_no,
            "studentPhone": self.student_phone,
            "parentPhone": self.parent_phone,
            "year": self.year,
            "admissionYear": self.admission_year,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class StudentSummary:
    """The slice of a student embedded in attendance records."""

    student_id: int
    student_name: str
    uid: str
    roll_no: int
    branch: str
    year: int

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "studentName": self.student_name,
            "uid": self.uid,
            "rollNo": self.roll_no,
            "branch": self.branch,
            "year": self.year,
        }


@dataclass(frozen=True)
class BranchYearCount:
    branch: str
    year: int
    count: int
