from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Collection, Optional, Sequence
from zoneinfo import ZoneInfo

import pytest
from werkzeug.security import generate_password_hash

from src.student_attendance.student_attendance.attendance.model import (
    AttendanceFilter,
    AttendanceRecord,
    MarkEntry,
    MarkingActivity,
    NewAttendance,
    StatusCount,
)
from src.student_attendance.student_attendance.container import assemble
from src.student_attendance.student_attendance.core.constants import (
    UQ_ATTENDANCE_STUDENT_DATE,
    UQ_SESSION_COHORT_DATE,
    UQ_STUDENT_ACTIVE_ROLL,
    UQ_STUDENT_UID,
)
from src.student_attendance.student_attendance.core.enums import Role
from src.student_attendance.student_attendance.core.exceptions import UniqueConstraintError
from src.student_attendance.student_attendance.students.model import (
    BranchYearCount,
    Student,
    StudentFields,
    StudentSummary,
)
from src.student_attendance.student_attendance.users.model import User
from src.student_attendance.student_attendance.users.tokens import TokenService

CREATED = datetime(2025, 6, 1, 9, 0, 0)


class InMemoryStudents:
    """Student store with the same unique keys as the schema."""

    def __init__(self):
        self.rows: dict[int, Student] = {}
        self._id = 0

    def _check(self, rows: dict[int, Student]) -> None:
        uids: set[str] = set()
        rolls: set[tuple] = set()
        for s in rows.values():
            if s.uid in uids:
                raise UniqueConstraintError(UQ_STUDENT_UID)
            uids.add(s.uid)
            if s.is_active:
                if s.fields.roll_key in rolls:
                    raise UniqueConstraintError(UQ_STUDENT_ACTIVE_ROLL)
                rolls.add(s.fields.roll_key)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.rows.get(int(student_id))

    def get_by_uid(self, uid: str, *, include_inactive: bool = False) -> Optional[Student]:
        for s in self.rows.values():
            if s.uid == uid and (include_inactive or s.is_active):
                return s
        return None

    def find_active_by_roll(self, *, branch, year, roll_no, admission_year, exclude_ids: Collection[int] = ()):
        for s in self.rows.values():
            if s.is_active and s.student_id not in exclude_ids and s.fields.roll_key == (branch, year, roll_no, admission_year):
                return s
        return None

    def uid_exists(self, uid: str, *, exclude_ids: Collection[int] = ()) -> bool:
        return any(s.uid == uid and s.student_id not in exclude_ids for s in self.rows.values())

    def existing_ids(self, student_ids: Collection[int]) -> set[int]:
        return {int(i) for i in student_ids if int(i) in self.rows and self.rows[int(i)].is_active}

    def create(self, *, uid: str, fields: StudentFields) -> Student:
        self._id += 1
        student = Student(
            student_id=self._id,
            student_name=fields.student_name,
            uid=uid,
            branch=fields.branch,
            roll_no=fields.roll_no,
            student_phone=fields.student_phone,
            parent_phone=fields.parent_phone,
            year=fields.year,
            admission_year=fields.admission_year,
            created_at=CREATED,
        )
        staged = {**self.rows, student.student_id: student}
        self._check(staged)
        self.rows = staged
        return student

    def save_all(self, students: Sequence[Student]) -> int:
        staged = dict(self.rows)
        for s in students:
            staged[s.student_id] = s
        self._check(staged)
        self.rows = staged
        return len(students)

    def list_active(self, *, branch=None, year=None, order_by=("year", "branch", "roll_no"), offset=None, limit=None):
        items = [
            s
            for s in self.rows.values()
            if s.is_active and (branch is None or s.branch == branch) and (year is None or s.year == year)
        ]
        items.sort(key=lambda s: tuple(getattr(s, k) for k in order_by) + (s.student_id,))
        if limit is not None:
            items = items[offset or 0 : (offset or 0) + limit]
        return items

    def count_active(self, *, branch=None, year=None) -> int:
        return len(self.list_active(branch=branch, year=year))

    def deactivate(self, student_id: int) -> bool:
        s = self.rows.get(int(student_id))
        if not s or not s.is_active:
            return False
        self.rows[s.student_id] = replace(s, is_active=False)
        return True

    def deactivate_where(self, *, branch=None, year=None) -> int:
        targets = self.list_active(branch=branch, year=year)
        for s in targets:
            self.rows[s.student_id] = replace(s, is_active=False)
        return len(targets)

    def distinct_branches(self) -> Sequence[str]:
        return sorted({s.branch for s in self.rows.values() if s.is_active})

    def count_by_branch_year(self) -> Sequence[BranchYearCount]:
        counts: dict[tuple[str, int], int] = {}
        for s in self.list_active():
            counts[(s.branch, s.year)] = counts.get((s.branch, s.year), 0) + 1
        return [BranchYearCount(branch=b, year=y, count=n) for (b, y), n in sorted(counts.items())]


class InMemoryAttendance:
    """Ledger store: one record per (student, date), one session per cohort day."""

    def __init__(self, students: InMemoryStudents):
        self._students = students
        self.records: dict[int, AttendanceRecord] = {}
        self.sessions: set[tuple[int, str, date]] = set()
        self._id = 0

    def _summary(self, r: AttendanceRecord) -> AttendanceRecord:
        s = self._students.get_by_id(r.student_id)
        summary = StudentSummary(
            student_id=s.student_id, student_name=s.student_name, uid=s.uid, roll_no=s.roll_no, branch=s.branch, year=s.year
        )
        return replace(r, student=summary)

    def _student_key(self, r: AttendanceRecord) -> tuple:
        s = self._students.get_by_id(r.student_id)
        return (s.branch, s.year, s.roll_no, r.attendance_id)

    def cohort_marked(self, *, year: int, branch: str, att_date: date) -> bool:
        return any(r.year == year and r.branch == branch and r.att_date == att_date for r in self.records.values())

    def insert_cohort(self, *, year, branch, att_date, marked_by, records: Sequence[NewAttendance]):
        if (year, branch, att_date) in self.sessions:
            raise UniqueConstraintError(UQ_SESSION_COHORT_DATE)
        taken = {(r.student_id, r.att_date) for r in self.records.values()}
        staged: dict[int, AttendanceRecord] = {}
        next_id = self._id
        for n in records:
            if (n.student_id, n.att_date) in taken:
                raise UniqueConstraintError(UQ_ATTENDANCE_STUDENT_DATE)
            taken.add((n.student_id, n.att_date))
            next_id += 1
            staged[next_id] = AttendanceRecord(
                attendance_id=next_id,
                student_id=n.student_id,
                year=n.year,
                branch=n.branch,
                att_date=n.att_date,
                status=n.status,
                marked_by=n.marked_by,
                created_at=CREATED,
                updated_at=CREATED,
            )
        self._id = next_id
        self.sessions.add((year, branch, att_date))
        self.records.update(staged)
        return self.list_cohort_day(year=year, branch=branch, att_date=att_date)

    def update_statuses(self, *, year, branch, att_date, entries: Sequence[MarkEntry], updated_by, updated_at) -> int:
        modified = 0
        for e in entries:
            for rid, r in self.records.items():
                if (r.student_id, r.year, r.branch, r.att_date) == (e.student_id, year, branch, att_date):
                    self.records[rid] = replace(r, status=e.status, updated_by=updated_by, updated_at=updated_at)
                    modified += 1
        return modified

    def list_cohort_day(self, *, year, branch, att_date):
        rows = [r for r in self.records.values() if (r.year, r.branch, r.att_date) == (year, branch, att_date)]
        rows.sort(key=lambda r: (self._students.get_by_id(r.student_id).roll_no, r.attendance_id))
        return [self._summary(r) for r in rows]

    def _in_range(self, r: AttendanceRecord, start, end) -> bool:
        return (start is None or r.att_date >= start) and (end is None or r.att_date <= end)

    def status_counts(self, *, year, branch, start=None, end=None):
        counts: dict[tuple, int] = {}
        for r in self.records.values():
            if r.year == year and r.branch == branch and self._in_range(r, start, end):
                counts[(r.att_date, r.status)] = counts.get((r.att_date, r.status), 0) + 1
        return [StatusCount(att_date=d, status=s, count=n) for (d, s), n in counts.items()]

    def history(self, *, student_id, start=None, end=None):
        rows = [r for r in self.records.values() if r.student_id == student_id and self._in_range(r, start, end)]
        rows.sort(key=lambda r: r.att_date, reverse=True)
        return [self._summary(r) for r in rows]

    def for_day(self, att_date: date):
        rows = [r for r in self.records.values() if r.att_date == att_date]
        rows.sort(key=self._student_key)
        return [self._summary(r) for r in rows]

    def _matches(self, r: AttendanceRecord, flt: AttendanceFilter) -> bool:
        return (
            (flt.year is None or r.year == flt.year)
            and (flt.branch is None or r.branch == flt.branch)
            and (flt.att_date is None or r.att_date == flt.att_date)
            and (flt.status is None or r.status == flt.status)
        )

    def search(self, flt: AttendanceFilter, *, offset: int, limit: int):
        rows = [r for r in self.records.values() if self._matches(r, flt)]
        rows.sort(key=lambda r: (-r.att_date.toordinal(), r.attendance_id))
        return [self._summary(r) for r in rows[offset : offset + limit]]

    def count(self, flt: AttendanceFilter) -> int:
        return sum(1 for r in self.records.values() if self._matches(r, flt))

    def report_rows(self, *, start, end, branch=None, year=None, student_id=None):
        rows = [
            r
            for r in self.records.values()
            if self._in_range(r, start, end)
            and (branch is None or r.branch == branch)
            and (year is None or r.year == year)
            and (student_id is None or r.student_id == student_id)
        ]
        rows.sort(key=lambda r: (-r.att_date.toordinal(),) + self._student_key(r))
        return [self._summary(r) for r in rows]

    def activity_rows(self, *, start, end, user_ids=None):
        if user_ids is not None and not user_ids:
            return []
        acc: dict[tuple, list[int]] = {}
        for r in self.records.values():
            if not self._in_range(r, start, end):
                continue
            for uid, marked, updated in ((r.marked_by, 1, 0), (r.updated_by, 0, 1)):
                if uid is None or (user_ids is not None and uid not in user_ids):
                    continue
                slot = acc.setdefault((uid, r.year, r.branch, r.att_date), [0, 0])
                slot[0] += marked
                slot[1] += updated
        return [
            MarkingActivity(user_id=u, year=y, branch=b, att_date=d, marked=m, updated=up)
            for (u, y, b, d), (m, up) in sorted(acc.items(), key=lambda kv: (-kv[0][3].toordinal(), kv[0][0]))
        ]


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self.users: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        for u in self.users.values():
            if u.email == email:
                return u
        return None

    def list_active(self, *, department=None, offset=None, limit=None):
        items = sorted(
            (u for u in self.users.values() if u.is_active and (department is None or u.department == department)),
            key=lambda u: u.full_name,
        )
        if limit is not None:
            items = items[offset or 0 : (offset or 0) + limit]
        return items

    def count_active(self, *, department=None) -> int:
        return len(self.list_active(department=department))

    def distinct_departments(self):
        return sorted({u.department for u in self.users.values() if u.is_active and u.department})


def make_user(user_id: int, role: Role, *, department: str = "IT", password: str = "secret123", **kw) -> User:
    return User(
        user_id=user_id,
        full_name=kw.pop("full_name", f"User {user_id}"),
        email=kw.pop("email", f"user{user_id}@test.com"),
        password_hash=generate_password_hash(password),
        role=role,
        department=department,
        **kw,
    )


def student_payload(**overrides) -> dict:
    payload = {
        "studentName": "Asha Rao",
        "branch": "CSE",
        "rollNo": 10,
        "studentPhone": "9876543210",
        "parentPhone": "9123456780",
        "year": 1,
        "admissionYear": 2024,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def students_repo():
    return InMemoryStudents()


@pytest.fixture
def attendance_repo(students_repo):
    return InMemoryAttendance(students_repo)


@pytest.fixture
def users_repo():
    return InMemoryUsers(
        [
            make_user(1, Role.ADMIN, full_name="Admin User", email="admin@test.com", password="admin123"),
            make_user(2, Role.STAFF, department="Science", full_name="Staff One"),
            make_user(3, Role.MANAGER, department="Science", full_name="Manager One"),
        ]
    )


@pytest.fixture
def tokens():
    return TokenService("test-secret", expire_minutes=60)


@pytest.fixture
def container(users_repo, students_repo, attendance_repo, tokens):
    return assemble(
        users_repo=users_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        timezone=ZoneInfo("Asia/Kolkata"),
    )


@pytest.fixture
def payload():
    """Factory for a valid student registration body."""

    return student_payload
