from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from ..core.enums import AttendanceStatus, Branch, YEARS
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", [{"field": field_name, "message": f"{field_name} is required"}])
    return value.strip()


def parse_int(value: Any) -> Optional[int]:
    """Strict int parsing: accepts ints and digit strings, rejects bools and floats."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    return None


def parse_year(value: Any, field_name: str = "year") -> int:
    year = parse_int(value)
    if year not in YEARS:
        raise ValidationError("Year must be 1, 2, 3, or 4", [{"field": field_name, "message": "Year must be 1, 2, 3, or 4"}])
    return year


def parse_branch(value: Any, field_name: str = "branch") -> str:
    code = str(value or "").strip().upper()
    try:
        return Branch(code).value
    except ValueError:
        raise ValidationError("Invalid branch", [{"field": field_name, "message": "Invalid branch"}])


def parse_status(value: Any, field_name: str = "status") -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(
            "Status must be present or absent",
            [{"field": field_name, "message": "Status must be present or absent"}],
        )


class FieldErrors:
    """Collects per-field messages and raises them as one ValidationError."""

    def __init__(self) -> None:
        self._errors: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self._errors.append({"field": field, "message": message})

    def extend(self, errors: Iterable[dict]) -> None:
        self._errors.extend(errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self._errors:
            raise ValidationError(message, self._errors)
