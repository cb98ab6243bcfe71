from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a staff account that marks attendance.

    Note: Plain data object (no DB access code here).
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    position: Optional[str] = None
    employee_id: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "fullName": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "department": self.department,
            "position": self.position,
            "employeeId": self.employee_id,
            "phone": self.phone,
            "isActive": self.is_active,
        }
