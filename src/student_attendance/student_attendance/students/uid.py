"""Student UID derivation and format check.

A UID reads ``<year><branch><admission yy><roll nn>``, e.g. year 1, CSE,
admitted 2024, roll 10 -> ``1CSE2410``. It is derived, never chosen, and the
two-digit admission year means years a century apart produce the same UID.
"""

from __future__ import annotations

import re

from ..core.constants import UID_PATTERN

UID_RE = re.compile(UID_PATTERN)


def derive_uid(year: int, branch: str, admission_year: int, roll_no: int) -> str:
    return f"{year}{branch}{str(admission_year)[-2:]}{str(roll_no).zfill(2)}"


def is_valid_uid(uid: str) -> bool:
    return bool(uid) and UID_RE.fullmatch(uid) is not None
