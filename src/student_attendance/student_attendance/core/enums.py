from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles of staff accounts, used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class Branch(str, Enum):
    """Branch codes a student can belong to."""

    CSE = "CSE"
    ECE = "ECE"
    ME = "ME"
    CE = "CE"
    IT = "IT"
    EEE = "EEE"
    AI = "AI"
    DS = "DS"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


YEARS = (1, 2, 3, 4)
