from __future__ import annotations

from typing import Collection, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import WhereBuilder, db_cursor, fetchall, fetchone, in_clause
from .model import BranchYearCount, Student, StudentFields
from .repository import ORDER_YEAR_BRANCH_ROLL, StudentRepository

_COLUMNS = """
    student_id, student_name, uid, branch, roll_no, student_phone, parent_phone,
    year, admission_year, is_active, created_at, updated_at
"""

_ORDER_COLUMNS = {"year": "year", "branch": "branch", "roll_no": "roll_no"}


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        student_name=r["student_name"],
        uid=r["uid"],
        branch=r["branch"],
        roll_no=int(r["roll_no"]),
        student_phone=r["student_phone"],
        parent_phone=r["parent_phone"],
        year=int(r["year"]),
        admission_year=int(r["admission_year"]),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _active_filter(branch: Optional[str], year: Optional[int]) -> WhereBuilder:
    where = WhereBuilder().add("is_active=1")
    if branch is not None:
        where.add("branch=%s", branch)
    if year is not None:
        where.add("year=%s", int(year))
    return where


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_uid(self, uid: str, *, include_inactive: bool = False) -> Optional[Student]:
        sql = f"SELECT {_COLUMNS} FROM students WHERE uid=%s"
        if not include_inactive:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (uid,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def find_active_by_roll(
        self,
        *,
        branch: str,
        year: int,
        roll_no: int,
        admission_year: int,
        exclude_ids: Collection[int] = (),
    ) -> Optional[Student]:
        where = _active_filter(branch, year).add("roll_no=%s", int(roll_no)).add("admission_year=%s", int(admission_year))
        if exclude_ids:
            where.add(f"student_id NOT IN ({in_clause(list(exclude_ids))})", *[int(i) for i in exclude_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE {where.sql()} LIMIT 1", tuple(where.params))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def uid_exists(self, uid: str, *, exclude_ids: Collection[int] = ()) -> bool:
        where = WhereBuilder().add("uid=%s", uid)
        if exclude_ids:
            where.add(f"student_id NOT IN ({in_clause(list(exclude_ids))})", *[int(i) for i in exclude_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT 1 AS found FROM students WHERE {where.sql()} LIMIT 1", tuple(where.params))
            return fetchone(cur) is not None

    def existing_ids(self, student_ids: Collection[int]) -> set[int]:
        ids = sorted({int(i) for i in student_ids})
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT student_id FROM students WHERE is_active=1 AND student_id IN ({in_clause(ids)})", tuple(ids)
            )
            return {int(r["student_id"]) for r in fetchall(cur)}

    def create(self, *, uid: str, fields: StudentFields) -> Student:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(student_name, uid, branch, roll_no, student_phone, parent_phone, year, admission_year)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    fields.student_name,
                    uid,
                    fields.branch,
                    fields.roll_no,
                    fields.student_phone,
                    fields.parent_phone,
                    fields.year,
                    fields.admission_year,
                ),
            )
            student_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (student_id,))
            return _to_student(fetchone(cur))

    def save_all(self, students: Sequence[Student]) -> int:
        if not students:
            return 0
        ids = [s.student_id for s in students]
        with db_cursor(self._conn_factory) as (_, cur):
            # Park the rows first so uids and roll tuples can move between them
            # without tripping the unique keys halfway through.
            cur.execute(
                f"UPDATE students SET is_active=0, uid=CONCAT('~', student_id) WHERE student_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            for s in students:
                cur.execute(
                    """
                    UPDATE students
                    SET student_name=%s, uid=%s, branch=%s, roll_no=%s, student_phone=%s,
                        parent_phone=%s, year=%s, admission_year=%s, is_active=%s
                    WHERE student_id=%s
                    """,
                    (
                        s.student_name,
                        s.uid,
                        s.branch,
                        s.roll_no,
                        s.student_phone,
                        s.parent_phone,
                        s.year,
                        s.admission_year,
                        1 if s.is_active else 0,
                        s.student_id,
                    ),
                )
            return len(students)

    def list_active(
        self,
        *,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        order_by: Sequence[str] = ORDER_YEAR_BRANCH_ROLL,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Student]:
        where = _active_filter(branch, year)
        order = ", ".join(_ORDER_COLUMNS[key] for key in order_by) or "student_id"
        sql = f"SELECT {_COLUMNS} FROM students WHERE {where.sql()} ORDER BY {order}, student_id"
        params = list(where.params)
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset or 0)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_student(r) for r in fetchall(cur)]

    def count_active(self, *, branch: Optional[str] = None, year: Optional[int] = None) -> int:
        where = _active_filter(branch, year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM students WHERE {where.sql()}", tuple(where.params))
            return int(fetchone(cur)["n"])

    def deactivate(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE students SET is_active=0 WHERE student_id=%s AND is_active=1", (int(student_id),))
            return cur.rowcount > 0

    def deactivate_where(self, *, branch: Optional[str] = None, year: Optional[int] = None) -> int:
        where = _active_filter(branch, year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE students SET is_active=0 WHERE {where.sql()}", tuple(where.params))
            return int(cur.rowcount)

    def distinct_branches(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT branch FROM students WHERE is_active=1 ORDER BY branch")
            return [r["branch"] for r in fetchall(cur)]

    def count_by_branch_year(self) -> Sequence[BranchYearCount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT branch, year, COUNT(*) AS n
                FROM students
                WHERE is_active=1
                GROUP BY branch, year
                ORDER BY branch, year
                """
            )
            return [BranchYearCount(branch=r["branch"], year=int(r["year"]), count=int(r["n"])) for r in fetchall(cur)]
