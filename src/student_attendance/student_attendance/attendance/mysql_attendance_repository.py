from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import WhereBuilder, db_cursor, fetchall, fetchone, in_clause
from ..students.model import StudentSummary
from .model import AttendanceFilter, AttendanceRecord, MarkEntry, MarkingActivity, NewAttendance, StatusCount
from .repository import AttendanceRepository

_SELECT = """
    SELECT
        ar.attendance_id, ar.student_id, ar.year, ar.branch, ar.att_date, ar.status,
        ar.marked_by, ar.updated_by, ar.notes, ar.created_at, ar.updated_at,
        s.student_name, s.uid, s.roll_no, s.branch AS student_branch, s.year AS student_year
    FROM attendance_records ar
    JOIN students s ON s.student_id = ar.student_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        year=int(r["year"]),
        branch=r["branch"],
        att_date=r["att_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]),
        updated_by=int(r["updated_by"]) if r.get("updated_by") is not None else None,
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        student=StudentSummary(
            student_id=int(r["student_id"]),
            student_name=r["student_name"],
            uid=r["uid"],
            roll_no=int(r["roll_no"]),
            branch=r["student_branch"],
            year=int(r["student_year"]),
        ),
    )


def _date_range(where: WhereBuilder, start: Optional[date], end: Optional[date]) -> WhereBuilder:
    if start is not None:
        where.add("ar.att_date >= %s", start)
    if end is not None:
        where.add("ar.att_date <= %s", end)
    return where


def _filter(flt: AttendanceFilter) -> WhereBuilder:
    where = WhereBuilder()
    if flt.year is not None:
        where.add("ar.year=%s", int(flt.year))
    if flt.branch is not None:
        where.add("ar.branch=%s", flt.branch)
    if flt.att_date is not None:
        where.add("ar.att_date=%s", flt.att_date)
    if flt.status is not None:
        where.add("ar.status=%s", flt.status.value)
    return where


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def cohort_marked(self, *, year: int, branch: str, att_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM attendance_records
                WHERE year=%s AND branch=%s AND att_date=%s
                LIMIT 1
                """,
                (int(year), branch, att_date),
            )
            return fetchone(cur) is not None

    def insert_cohort(
        self,
        *,
        year: int,
        branch: str,
        att_date: date,
        marked_by: int,
        records: Sequence[NewAttendance],
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO attendance_sessions(year, branch, att_date, marked_by) VALUES(%s,%s,%s,%s)",
                (int(year), branch, att_date, int(marked_by)),
            )
            cur.executemany(
                """
                INSERT INTO attendance_records(student_id, year, branch, att_date, status, marked_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                [(r.student_id, r.year, r.branch, r.att_date, r.status.value, r.marked_by) for r in records],
            )
            cur.execute(
                _SELECT + " WHERE ar.year=%s AND ar.branch=%s AND ar.att_date=%s ORDER BY s.roll_no, ar.attendance_id",
                (int(year), branch, att_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update_statuses(
        self,
        *,
        year: int,
        branch: str,
        att_date: date,
        entries: Sequence[MarkEntry],
        updated_by: int,
        updated_at: datetime,
    ) -> int:
        stamp = updated_at.replace(tzinfo=None)
        modified = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for entry in entries:
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, updated_by=%s, updated_at=%s
                    WHERE student_id=%s AND year=%s AND branch=%s AND att_date=%s
                    """,
                    (entry.status.value, int(updated_by), stamp, entry.student_id, int(year), branch, att_date),
                )
                if cur.rowcount > 0:
                    modified += 1
        return modified

    def list_cohort_day(self, *, year: int, branch: str, att_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE ar.year=%s AND ar.branch=%s AND ar.att_date=%s ORDER BY s.roll_no, ar.attendance_id",
                (int(year), branch, att_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def status_counts(
        self,
        *,
        year: int,
        branch: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[StatusCount]:
        where = _date_range(WhereBuilder().add("ar.year=%s", int(year)).add("ar.branch=%s", branch), start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.att_date, ar.status, COUNT(*) AS n
                FROM attendance_records ar
                WHERE {where.sql()}
                GROUP BY ar.att_date, ar.status
                ORDER BY ar.att_date DESC, ar.status
                """,
                tuple(where.params),
            )
            return [
                StatusCount(att_date=r["att_date"], status=AttendanceStatus(r["status"]), count=int(r["n"]))
                for r in fetchall(cur)
            ]

    def history(
        self,
        *,
        student_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        where = _date_range(WhereBuilder().add("ar.student_id=%s", int(student_id)), start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE {where.sql()} ORDER BY ar.att_date DESC", tuple(where.params))
            return [_to_record(r) for r in fetchall(cur)]

    def for_day(self, att_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE ar.att_date=%s ORDER BY s.branch, s.year, s.roll_no, ar.attendance_id",
                (att_date,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def search(self, flt: AttendanceFilter, *, offset: int, limit: int) -> Sequence[AttendanceRecord]:
        where = _filter(flt)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {where.sql()} ORDER BY ar.att_date DESC, ar.attendance_id LIMIT %s OFFSET %s",
                tuple(where.params) + (int(limit), int(offset)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count(self, flt: AttendanceFilter) -> int:
        where = _filter(flt)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records ar WHERE {where.sql()}", tuple(where.params))
            return int(fetchone(cur)["n"])

    def report_rows(
        self,
        *,
        start: date,
        end: date,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        where = _date_range(WhereBuilder(), start, end)
        if branch is not None:
            where.add("ar.branch=%s", branch)
        if year is not None:
            where.add("ar.year=%s", int(year))
        if student_id is not None:
            where.add("ar.student_id=%s", int(student_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {where.sql()} ORDER BY ar.att_date DESC, s.branch, s.year, s.roll_no",
                tuple(where.params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def activity_rows(
        self,
        *,
        start: date,
        end: date,
        user_ids: Optional[Collection[int]] = None,
    ) -> Sequence[MarkingActivity]:
        if user_ids is not None and not user_ids:
            return []

        params: list[object] = [start, end, start, end]
        user_clause = ""
        if user_ids is not None:
            ids = sorted({int(u) for u in user_ids})
            user_clause = f"WHERE a.user_id IN ({in_clause(ids)})"
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.user_id, a.year, a.branch, a.att_date,
                       SUM(a.marked) AS marked, SUM(a.updated) AS updated
                FROM (
                    SELECT marked_by AS user_id, year, branch, att_date, 1 AS marked, 0 AS updated
                    FROM attendance_records
                    WHERE att_date BETWEEN %s AND %s
                    UNION ALL
                    SELECT updated_by AS user_id, year, branch, att_date, 0 AS marked, 1 AS updated
                    FROM attendance_records
                    WHERE updated_by IS NOT NULL AND att_date BETWEEN %s AND %s
                ) a
                {user_clause}
                GROUP BY a.user_id, a.year, a.branch, a.att_date
                ORDER BY a.att_date DESC, a.user_id, a.year, a.branch
                """,
                tuple(params),
            )
            return [
                MarkingActivity(
                    user_id=int(r["user_id"]),
                    year=int(r["year"]),
                    branch=r["branch"],
                    att_date=r["att_date"],
                    marked=int(r["marked"] or 0),
                    updated=int(r["updated"] or 0),
                )
                for r in fetchall(cur)
            ]
