from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import WhereBuilder, db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, full_name, email, password_hash, role, department, position,
    employee_id, phone, is_active, created_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department=row.get("department"),
        position=row.get("position"),
        employee_id=row.get("employee_id"),
        phone=row.get("phone"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


def _active(department: Optional[str]) -> WhereBuilder:
    where = WhereBuilder().add("is_active=1")
    if department is not None:
        where.add("department=%s", department)
    return where


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_active(
        self,
        *,
        department: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[User]:
        where = _active(department)
        sql = f"SELECT {_COLUMNS} FROM users WHERE {where.sql()} ORDER BY full_name, user_id"
        params = list(where.params)
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset or 0)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_user(r) for r in fetchall(cur)]

    def count_active(self, *, department: Optional[str] = None) -> int:
        where = _active(department)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {where.sql()}", tuple(where.params))
            return int(fetchone(cur)["n"])

    def distinct_departments(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT DISTINCT department FROM users WHERE is_active=1 AND department IS NOT NULL ORDER BY department"
            )
            return [r["department"] for r in fetchall(cur)]
