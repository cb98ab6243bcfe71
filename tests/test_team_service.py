from __future__ import annotations

from datetime import date, datetime

import pytest

from src.student_attendance.student_attendance.attendance.service import AttendanceService
from src.student_attendance.student_attendance.common.pagination import PageRequest
from src.student_attendance.student_attendance.core.exceptions import NotFoundError
from src.student_attendance.student_attendance.students.service import StudentService
from src.student_attendance.student_attendance.teams.service import TeamService

TODAY = date(2026, 3, 11)  # a Wednesday


@pytest.fixture
def teams(users_repo, attendance_repo, students_repo, payload):
    students = StudentService(students_repo)
    cse = [students.register(payload(rollNo=r), today=TODAY) for r in (1, 2)]
    ledger = AttendanceService(attendance_repo, students_repo)

    entries = [{"studentId": s.student_id, "status": "present"} for s in cse]
    # staff (2) marks today and earlier this week, the manager (3) corrects today
    ledger.mark_cohort(year=1, branch="CSE", day=TODAY, entries=entries, actor_id=2)
    ledger.mark_cohort(year=1, branch="CSE", day=date(2026, 3, 9), entries=entries, actor_id=2)
    ledger.update_cohort(
        year=1,
        branch="CSE",
        day=TODAY,
        entries=[{"studentId": cse[0].student_id, "status": "absent"}],
        actor_id=3,
        now=datetime(2026, 3, 11, 12, 0),
    )
    return TeamService(users_repo, attendance_repo)


def test_departments(teams):
    data = {d["name"]: d for d in teams.departments(today=TODAY)}

    assert data["Science"] == {"name": "Science", "totalUsers": 2, "activeToday": 2, "activityRate": 100}
    assert data["IT"] == {"name": "IT", "totalUsers": 1, "activeToday": 0, "activityRate": 0}


def test_department_members(teams):
    data = teams.department_members("Science", page=PageRequest(page=1, limit=1), today=TODAY)

    assert data["pagination"] == {"current": 1, "pages": 2, "total": 2}
    assert data["users"][0]["fullName"] == "Manager One"
    assert data["users"][0]["today"] == {"recordsMarked": 0, "recordsUpdated": 1, "cohortsMarked": 0}


def test_member_activity(teams):
    data = teams.member(2, today=TODAY)

    assert data["user"]["email"] == "user2@test.com"
    assert "passwordHash" not in data["user"]
    assert [(a["date"], a["marked"]) for a in data["recentActivity"]] == [("2026-03-11", 2), ("2026-03-09", 2)]
    assert data["monthlyStats"] == {"recordsMarked": 4, "recordsUpdated": 0, "cohortsMarked": 2}


def test_member_not_found(teams):
    with pytest.raises(NotFoundError):
        teams.member(42, today=TODAY)


def test_overview(teams):
    data = teams.overview(today=TODAY, department="Science")

    assert data["totalMembers"] == 2
    assert data["today"]["activeMembers"] == 2
    assert data["today"]["recordsMarked"] == 2
    assert data["today"]["recordsUpdated"] == 1
    assert data["thisWeek"] == {"recordsMarked": 4, "recordsUpdated": 1, "cohortsMarked": 2}
