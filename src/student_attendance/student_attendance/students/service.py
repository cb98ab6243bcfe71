from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.constants import UQ_STUDENT_ACTIVE_ROLL, UQ_STUDENT_UID
from ..core.exceptions import (
    DuplicateRollNumberError,
    DuplicateUIDError,
    NotFoundError,
    UniqueConstraintError,
    ValidationError,
)
from .model import Student, StudentFields
from .repository import (
    ORDER_BRANCH_ROLL,
    ORDER_ROLL,
    ORDER_YEAR_BRANCH_ROLL,
    ORDER_YEAR_ROLL,
    StudentRepository,
)
from .uid import derive_uid, is_valid_uid
from .validation import check_bulk_update, fields_to_payload, parse_student_fields

logger = logging.getLogger(__name__)


def _uid_for(fields: StudentFields) -> str:
    uid = derive_uid(fields.year, fields.branch, fields.admission_year, fields.roll_no)
    if not is_valid_uid(uid):
        raise ValidationError(
            "UID must be in format: YearBranchYearRollNo (e.g., 1CSE2410)",
            [{"field": "rollNo", "message": "Roll number must have at most 3 digits"}],
        )
    return uid


def _translate(e: UniqueConstraintError) -> Exception:
    if e.constraint == UQ_STUDENT_ACTIVE_ROLL:
        return DuplicateRollNumberError()
    if e.constraint == UQ_STUDENT_UID:
        return DuplicateUIDError()
    return e


class StudentService:
    """Use cases around student identity: register, edit, list, retire.

    The uid is derived from (year, branch, admission year, roll number) on
    every write. Two uniqueness rules apply and both are checked: the roll
    tuple among active students and the uid among all students. The checks
    here are advisory; the unique keys in storage decide.
    """

    def __init__(self, students: StudentRepository):
        self._students = students

    def _check_unique(self, *, uid: str, fields: StudentFields, exclude_ids: Sequence[int] = ()) -> None:
        if self._students.find_active_by_roll(
            branch=fields.branch,
            year=fields.year,
            roll_no=fields.roll_no,
            admission_year=fields.admission_year,
            exclude_ids=exclude_ids,
        ):
            raise DuplicateRollNumberError()
        if self._students.uid_exists(uid, exclude_ids=exclude_ids):
            raise DuplicateUIDError()

    def register(self, payload: Mapping[str, Any], *, today: date) -> Student:
        fields = parse_student_fields(payload, current_year=today.year)
        uid = _uid_for(fields)
        self._check_unique(uid=uid, fields=fields)

        try:
            student = self._students.create(uid=uid, fields=fields)
        except UniqueConstraintError as e:
            raise _translate(e) from e

        logger.info("Registered student %s (id=%s)", student.uid, student.student_id)
        return student

    def update(self, uid: str, payload: Mapping[str, Any], *, today: date) -> Student:
        """Replace a student's fields; the uid follows them."""

        student = self._students.get_by_uid(uid)
        if not student:
            raise NotFoundError("Student not found")

        fields = parse_student_fields(payload, current_year=today.year)
        new_uid = _uid_for(fields)
        if new_uid != student.uid:
            self._check_unique(uid=new_uid, fields=fields, exclude_ids=[student.student_id])

        updated = student.with_fields(fields, uid=new_uid)
        try:
            self._students.save_all([updated])
        except UniqueConstraintError as e:
            raise _translate(e) from e

        if new_uid != student.uid:
            logger.info("Student %s renamed to %s", student.uid, new_uid)
        return updated

    def bulk_update(
        self,
        *,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        update_data: Any,
        today: date,
    ) -> int:
        """Apply the same field changes to every active student of a branch and/or year.

        Every affected student is re-validated and re-keyed before anything is
        written; the writes then go out as one transaction.
        """

        changes = check_bulk_update(update_data)
        targets = self._students.list_active(branch=branch, year=year, order_by=ORDER_YEAR_BRANCH_ROLL)
        if not targets:
            return 0

        batch_ids = [s.student_id for s in targets]
        updated: list[Student] = []
        seen_uids: dict[str, int] = {}
        seen_rolls: dict[tuple, int] = {}

        for student in targets:
            payload = fields_to_payload(student.fields)
            payload.update(changes)
            try:
                fields = parse_student_fields(payload, current_year=today.year)
            except ValidationError as e:
                raise ValidationError(f"Invalid update for student {student.uid}", e.errors) from e
            new_uid = _uid_for(fields)

            if fields.roll_key in seen_rolls:
                raise DuplicateRollNumberError()
            if new_uid in seen_uids:
                raise DuplicateUIDError()
            seen_rolls[fields.roll_key] = student.student_id
            seen_uids[new_uid] = student.student_id

            # Rows in the batch move together, so only rows outside it can collide.
            self._check_unique(uid=new_uid, fields=fields, exclude_ids=batch_ids)

            candidate = student.with_fields(fields, uid=new_uid)
            if candidate != student:
                updated.append(candidate)

        try:
            modified = self._students.save_all(updated)
        except UniqueConstraintError as e:
            raise _translate(e) from e

        logger.info("Bulk updated %d students (branch=%s, year=%s)", modified, branch, year)
        return modified

    def search(self, uid: str) -> Student:
        student = self._students.get_by_uid(uid)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student or not student.is_active:
            raise NotFoundError("Student not found")
        return student

    def list_students(self, *, branch: Optional[str] = None, year: Optional[int] = None, page: PageRequest) -> Page[Student]:
        items = self._students.list_active(
            branch=branch, year=year, order_by=ORDER_YEAR_BRANCH_ROLL, offset=page.offset, limit=page.limit
        )
        total = self._students.count_active(branch=branch, year=year)
        return Page(items=items, total=total, request=page)

    def by_branch(self, branch: str, *, year: Optional[int] = None) -> Sequence[Student]:
        return self._students.list_active(branch=branch, year=year, order_by=ORDER_YEAR_ROLL)

    def by_year(self, year: int, *, branch: Optional[str] = None) -> Sequence[Student]:
        return self._students.list_active(branch=branch, year=year, order_by=ORDER_BRANCH_ROLL)

    def cohort_roster(self, *, year: int, branch: str) -> Sequence[Student]:
        return self._students.list_active(branch=branch, year=year, order_by=ORDER_ROLL)

    def branches(self) -> Sequence[str]:
        return sorted(self._students.distinct_branches())

    def delete(self, uid: str) -> None:
        """Soft delete: the row and its uid stay, normal queries stop seeing it."""

        student = self._students.get_by_uid(uid)
        if not student:
            raise NotFoundError("Student not found")
        self._students.deactivate(student.student_id)
        logger.info("Deactivated student %s", uid)

    def bulk_delete(self, *, branch: Optional[str] = None, year: Optional[int] = None) -> int:
        count = self._students.deactivate_where(branch=branch, year=year)
        logger.info("Deactivated %d students (branch=%s, year=%s)", count, branch, year)
        return count

    def statistics(self) -> dict:
        rows = self._students.count_by_branch_year()

        by_branch: dict[str, int] = defaultdict(int)
        by_year: dict[int, int] = defaultdict(int)
        years_of_branch: dict[str, list[dict]] = defaultdict(list)
        for r in rows:
            by_branch[r.branch] += r.count
            by_year[r.year] += r.count
            years_of_branch[r.branch].append({"year": r.year, "count": r.count})

        return {
            "totalStudents": sum(by_branch.values()),
            "branchStats": [{"branch": b, "count": by_branch[b]} for b in sorted(by_branch)],
            "yearStats": [{"year": y, "count": by_year[y]} for y in sorted(by_year)],
            "branchYearStats": [
                {
                    "branch": b,
                    "years": sorted(years_of_branch[b], key=lambda x: x["year"]),
                    "totalCount": by_branch[b],
                }
                for b in sorted(years_of_branch)
            ],
        }
