from __future__ import annotations

from datetime import date

import pytest

from src.student_attendance.student_attendance.common.pagination import PageRequest
from src.student_attendance.student_attendance.core.constants import UQ_STUDENT_UID
from src.student_attendance.student_attendance.core.exceptions import (
    DuplicateRollNumberError,
    DuplicateUIDError,
    NotFoundError,
    UniqueConstraintError,
    ValidationError,
)
from src.student_attendance.student_attendance.students.service import StudentService

TODAY = date(2026, 3, 1)


@pytest.fixture
def svc(students_repo):
    return StudentService(students_repo)


def test_register_derives_uid(svc, payload):
    student = svc.register(payload(), today=TODAY)
    assert student.uid == "1CSE2410"
    assert student.is_active
    assert svc.search("1CSE2410").student_id == student.student_id


def test_register_accepts_lowercase_branch_and_string_numbers(svc, payload):
    student = svc.register(payload(branch="ece", rollNo="7", year="2", admissionYear="2025"), today=TODAY)
    assert student.uid == "2ECE2507"


def test_register_reports_every_bad_field(svc, payload):
    with pytest.raises(ValidationError) as exc:
        svc.register(
            payload(studentName="A", branch="XYZ", studentPhone="12345", year=5, admissionYear=2019),
            today=TODAY,
        )
    fields = {e["field"] for e in exc.value.errors}
    assert fields == {"studentName", "branch", "studentPhone", "year", "admissionYear"}


def test_admission_year_cannot_be_in_the_future(svc, payload):
    with pytest.raises(ValidationError):
        svc.register(payload(admissionYear=2027), today=TODAY)


def test_roll_over_three_digits_is_rejected(svc, payload):
    with pytest.raises(ValidationError):
        svc.register(payload(rollNo=1234), today=TODAY)


def test_same_roll_tuple_is_duplicate_roll_number(svc, payload):
    svc.register(payload(), today=TODAY)
    with pytest.raises(DuplicateRollNumberError):
        svc.register(payload(studentName="Other Name"), today=TODAY)


def test_century_apart_admission_years_are_duplicate_uid(svc, payload):
    later = date(2130, 1, 1)
    svc.register(payload(admissionYear=2024), today=later)
    with pytest.raises(DuplicateUIDError):
        svc.register(payload(admissionYear=2124), today=later)


def test_uid_of_deleted_student_stays_taken(svc, payload):
    svc.register(payload(), today=TODAY)
    svc.delete("1CSE2410")
    with pytest.raises(DuplicateUIDError):
        svc.register(payload(), today=TODAY)


def test_storage_violation_is_translated(students_repo, payload):
    class RacingRepo(type(students_repo)):
        def create(self, *, uid, fields):
            raise UniqueConstraintError(UQ_STUDENT_UID)

    with pytest.raises(DuplicateUIDError):
        StudentService(RacingRepo()).register(payload(), today=TODAY)


def test_update_renames_uid(svc, payload):
    svc.register(payload(), today=TODAY)
    updated = svc.update("1CSE2410", payload(year=2, rollNo=11), today=TODAY)
    assert updated.uid == "2CSE2411"
    with pytest.raises(NotFoundError):
        svc.search("1CSE2410")


def test_update_onto_existing_uid_is_rejected(svc, payload):
    svc.register(payload(), today=TODAY)
    svc.register(payload(rollNo=11), today=TODAY)
    with pytest.raises(DuplicateRollNumberError):
        svc.update("1CSE2411", payload(rollNo=10), today=TODAY)


def test_update_same_uid_keeps_identity(svc, payload):
    student = svc.register(payload(), today=TODAY)
    updated = svc.update("1CSE2410", payload(studentName="Asha R"), today=TODAY)
    assert updated.student_id == student.student_id
    assert updated.student_name == "Asha R"


def test_update_missing_student(svc, payload):
    with pytest.raises(NotFoundError):
        svc.update("1CSE2499", payload(), today=TODAY)


def test_bulk_update_promotes_a_cohort(svc, payload):
    svc.register(payload(rollNo=1), today=TODAY)
    svc.register(payload(rollNo=2), today=TODAY)
    svc.register(payload(rollNo=3, branch="ME"), today=TODAY)

    modified = svc.bulk_update(branch="CSE", year=1, update_data={"year": 2}, today=TODAY)

    assert modified == 2
    assert [s.uid for s in svc.by_year(2)] == ["2CSE2401", "2CSE2402"]
    assert [s.uid for s in svc.by_year(1)] == ["1ME2403"]


def test_bulk_update_checks_against_students_outside_the_batch(svc, payload):
    svc.register(payload(rollNo=1, year=1), today=TODAY)
    svc.register(payload(rollNo=1, year=2), today=TODAY)

    with pytest.raises(DuplicateRollNumberError):
        svc.bulk_update(branch="CSE", year=1, update_data={"year": 2}, today=TODAY)
    assert svc.search("1CSE2401").year == 1


def test_bulk_update_rejects_identity_fields(svc, payload):
    svc.register(payload(), today=TODAY)
    with pytest.raises(ValidationError):
        svc.bulk_update(branch="CSE", update_data={"rollNo": 5}, today=TODAY)
    with pytest.raises(ValidationError):
        svc.bulk_update(branch="CSE", update_data={}, today=TODAY)


def test_bulk_update_counts_only_changed_students(svc, payload):
    svc.register(payload(rollNo=1), today=TODAY)
    svc.register(payload(rollNo=2, studentPhone="9000000000"), today=TODAY)
    assert svc.bulk_update(branch="CSE", update_data={"studentPhone": "9000000000"}, today=TODAY) == 1


def test_listing_and_pagination(svc, payload):
    for roll in (3, 1, 2):
        svc.register(payload(rollNo=roll), today=TODAY)
    svc.register(payload(rollNo=1, year=2, branch="AI"), today=TODAY)

    page = svc.list_students(page=PageRequest(page=1, limit=2))
    assert [s.uid for s in page.items] == ["1CSE2401", "1CSE2402"]
    assert page.total == 4
    assert page.total_pages == 2

    assert [s.roll_no for s in svc.cohort_roster(year=1, branch="CSE")] == [1, 2, 3]
    assert svc.branches() == ["AI", "CSE"]


def test_soft_delete_hides_students(svc, payload):
    svc.register(payload(rollNo=1), today=TODAY)
    svc.register(payload(rollNo=2), today=TODAY)
    svc.register(payload(rollNo=3, year=2), today=TODAY)

    assert svc.bulk_delete(branch="CSE", year=1) == 2
    assert [s.uid for s in svc.by_branch("CSE")] == ["2CSE2403"]

    with pytest.raises(NotFoundError):
        svc.delete("1CSE2401")


def test_get_by_id_skips_deleted_students(svc, payload):
    student = svc.register(payload(), today=TODAY)
    assert svc.get(student.student_id).uid == "1CSE2410"

    svc.delete(student.uid)
    with pytest.raises(NotFoundError):
        svc.get(student.student_id)
    with pytest.raises(NotFoundError):
        svc.get(999)


def test_statistics(svc, payload):
    svc.register(payload(rollNo=1), today=TODAY)
    svc.register(payload(rollNo=2, year=2), today=TODAY)
    svc.register(payload(rollNo=3, branch="IT"), today=TODAY)

    stats = svc.statistics()

    assert stats["totalStudents"] == 3
    assert stats["branchStats"] == [{"branch": "CSE", "count": 2}, {"branch": "IT", "count": 1}]
    assert stats["yearStats"] == [{"year": 1, "count": 2}, {"year": 2, "count": 1}]
    assert stats["branchYearStats"][0] == {
        "branch": "CSE",
        "years": [{"year": 1, "count": 1}, {"year": 2, "count": 1}],
        "totalCount": 2,
    }
