from __future__ import annotations

import re
from typing import Any, Mapping

from ..common.validators import FieldErrors, parse_int
from ..core.constants import MIN_ADMISSION_YEAR, PHONE_PATTERN, STUDENT_NAME_MAX, STUDENT_NAME_MIN
from ..core.enums import Branch, YEARS
from .model import StudentFields

PHONE_RE = re.compile(PHONE_PATTERN)

# JSON key -> StudentFields attribute, for the fields a bulk update may touch
BULK_UPDATABLE = {
    "year": "year",
    "branch": "branch",
    "admissionYear": "admission_year",
    "studentPhone": "student_phone",
    "parentPhone": "parent_phone",
}


def _phone(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def parse_student_fields(payload: Mapping[str, Any], *, current_year: int) -> StudentFields:
    """Validate a full student payload, reporting every bad field at once."""

    errors = FieldErrors()

    raw_name = payload.get("studentName", payload.get("name"))
    name = raw_name.strip() if isinstance(raw_name, str) else ""
    if not STUDENT_NAME_MIN <= len(name) <= STUDENT_NAME_MAX:
        errors.add("studentName", f"Student name must be between {STUDENT_NAME_MIN} and {STUDENT_NAME_MAX} characters")

    branch = str(payload.get("branch") or "").strip().upper()
    if branch not in Branch.__members__:
        errors.add("branch", "Invalid branch")

    roll_no = parse_int(payload.get("rollNo"))
    if roll_no is None or roll_no < 1:
        errors.add("rollNo", "Roll number must be a positive integer")

    student_phone = _phone(payload.get("studentPhone"))
    if not PHONE_RE.fullmatch(student_phone):
        errors.add("studentPhone", "Please enter a valid 10-digit student phone number")

    parent_phone = _phone(payload.get("parentPhone"))
    if not PHONE_RE.fullmatch(parent_phone):
        errors.add("parentPhone", "Please enter a valid 10-digit parent phone number")

    year = parse_int(payload.get("year"))
    if year not in YEARS:
        errors.add("year", "Year must be 1, 2, 3, or 4")

    admission_year = parse_int(payload.get("admissionYear"))
    if admission_year is None or not MIN_ADMISSION_YEAR <= admission_year <= current_year:
        errors.add("admissionYear", f"Admission year must be between {MIN_ADMISSION_YEAR} and current year")

    errors.raise_if_any()
    return StudentFields(
        student_name=name,
        branch=branch,
        roll_no=roll_no,
        student_phone=student_phone,
        parent_phone=parent_phone,
        year=year,
        admission_year=admission_year,
    )


def fields_to_payload(fields: StudentFields) -> dict:
    return {
        "studentName": fields.student_name,
        "branch": fields.branch,
        "rollNo": fields.roll_no,
        "studentPhone": fields.student_phone,
        "parentPhone": fields.parent_phone,
        "year": fields.year,
        "admissionYear": fields.admission_year,
    }


def check_bulk_update(update_data: Any) -> dict:
    errors = FieldErrors()
    if not isinstance(update_data, dict) or not update_data:
        errors.add("updateData", "updateData must be a non-empty object")
        errors.raise_if_any()
    for key in update_data:
        if key not in BULK_UPDATABLE:
            errors.add(f"updateData.{key}", "Field cannot be bulk updated")
    errors.raise_if_any()
    return dict(update_data)
