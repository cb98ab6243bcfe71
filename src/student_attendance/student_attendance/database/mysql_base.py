from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import UniqueConstraintError
from .connection import DatabaseConnection

# MySQL 8 prefixes the key with the table name: "for key 'students.uq_students_uid'"
_DUP_KEY_RE = re.compile(r"for key '(?:[^.']+\.)?([^']+)'")


def unique_violation(exc: mysql.connector.IntegrityError) -> Optional[UniqueConstraintError]:
    """Translate a duplicate-key IntegrityError, or return None for other integrity errors."""

    if getattr(exc, "errno", None) != errorcode.ER_DUP_ENTRY:
        return None
    match = _DUP_KEY_RE.search(str(getattr(exc, "msg", "") or exc))
    return UniqueConstraintError(match.group(1) if match else "unknown", str(exc))


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection and cursor per unit of work.

    Commits when the block exits cleanly, rolls back otherwise. Duplicate-key
    errors leave as UniqueConstraintError so services never see driver types.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as e:
        conn.rollback()
        violation = unique_violation(e)
        if violation is not None:
            raise violation from e
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for ``IN (...)``; callers must not pass an empty sequence."""
    return ", ".join(["%s"] * len(values))


class WhereBuilder:
    """Accumulates ``AND``-joined SQL predicates with their parameters."""

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.params: list[object] = []

    def add(self, clause: str, *params: object) -> "WhereBuilder":
        self.clauses.append(clause)
        self.params.extend(params)
        return self

    def sql(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "1=1"
