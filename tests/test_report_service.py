from __future__ import annotations

from datetime import date

import pytest

from src.student_attendance.student_attendance.attendance.service import AttendanceService
from src.student_attendance.student_attendance.core.exceptions import NotFoundError, ValidationError
from src.student_attendance.student_attendance.reports.service import ReportService, resolve_range
from src.student_attendance.student_attendance.students.service import StudentService

TODAY = date(2026, 3, 10)


@pytest.fixture
def seeded(students_repo, attendance_repo, payload):
    students = StudentService(students_repo)
    cse = [students.register(payload(rollNo=r), today=TODAY) for r in (1, 2)]
    it = students.register(payload(rollNo=1, branch="IT"), today=TODAY)

    ledger = AttendanceService(attendance_repo, students_repo)
    ledger.mark_cohort(
        year=1,
        branch="CSE",
        day=TODAY,
        entries=[{"studentId": cse[0].student_id, "status": "present"}, {"studentId": cse[1].student_id, "status": "absent"}],
        actor_id=2,
    )
    ledger.mark_cohort(
        year=1,
        branch="CSE",
        day=date(2026, 3, 2),
        entries=[{"studentId": cse[0].student_id, "status": "present"}, {"studentId": cse[1].student_id, "status": "present"}],
        actor_id=2,
    )
    ledger.mark_cohort(
        year=1,
        branch="IT",
        day=date(2026, 2, 20),
        entries=[{"studentId": it.student_id, "status": "absent"}],
        actor_id=3,
    )
    return {"cse": cse, "it": it}


@pytest.fixture
def reports(attendance_repo, students_repo):
    return ReportService(attendance_repo, students_repo)


def test_range_defaults_to_last_thirty_days():
    assert resolve_range(None, None, today=TODAY) == (date(2026, 2, 8), TODAY)
    assert resolve_range(date(2026, 3, 1), None, today=TODAY) == (date(2026, 3, 1), TODAY)
    with pytest.raises(ValidationError):
        resolve_range(date(2026, 3, 5), date(2026, 3, 1), today=TODAY)


def test_dashboard(reports, seeded):
    data = reports.dashboard(today=TODAY)

    assert data["today"] == {"present": 1, "absent": 1, "marked": 2, "totalStudents": 3}
    assert data["thisMonth"] == {"totalRecords": 4, "present": 3, "absent": 1, "attendanceRate": 75.0}
    assert [b["branch"] for b in data["branchStats"]] == ["CSE"]


def test_attendance_report_filters(reports, seeded):
    data = reports.attendance_report(today=TODAY, branch="IT")

    assert data["summary"] == {"totalRecords": 1, "present": 0, "absent": 1, "attendanceRate": 0}
    assert data["dateRange"] == {"start": "2026-02-08", "end": "2026-03-10"}
    assert data["attendance"][0]["student"]["uid"] == "1IT2401"


def test_student_report(reports, seeded):
    sid = seeded["cse"][1].student_id
    data = reports.student_report(student_id=sid, today=TODAY)

    assert data["student"]["uid"] == "1CSE2402"
    assert data["summary"] == {"totalDays": 2, "present": 1, "absent": 1, "attendancePercentage": 50.0}
    assert [r["date"] for r in data["attendance"]] == ["2026-03-10", "2026-03-02"]


def test_student_report_unknown_student(reports, seeded):
    with pytest.raises(NotFoundError):
        reports.student_report(student_id=999, today=TODAY)


def test_branch_report(reports, seeded):
    data = reports.branch_report(branch="CSE", today=TODAY, start=date(2026, 3, 5))

    assert data["summary"]["totalStudents"] == 2
    assert data["summary"]["totalRecords"] == 2
    assert len(data["students"]) == 2
