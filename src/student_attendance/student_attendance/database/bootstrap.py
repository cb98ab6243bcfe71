from __future__ import annotations

import logging
import re
from pathlib import Path

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)


_COMMENT_LINE = re.compile(r"(?m)^\s*--.*$")
# Quoted literals are matched whole so a ';' inside them never ends a statement.
_SQL_TOKEN = re.compile(r"""'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|;|[^;'"]+""", re.S)
# The target database comes from DB_CONFIG, not from the script.
_SKIPPED = re.compile(r"^(CREATE\s+DATABASE|USE)\b", re.I)


def split_statements(sql: str) -> list[str]:
    """Split a schema script into executable statements.

    ``--`` comment lines are dropped, as are ``CREATE DATABASE`` and ``USE``
    statements.
    """

    statements: list[str] = []
    current = ""
    for token in _SQL_TOKEN.findall(_COMMENT_LINE.sub("", sql)):
        if token != ";":
            current += token
            continue
        statements.append(current.strip())
        current = ""
    statements.append(current.strip())
    return [s for s in statements if s and not _SKIPPED.match(s)]


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    statements = split_statements(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied schema %s to %s", schema_path, target.database)


def ensure_admin_user(db_config: dict, *, email: str, password: str, full_name: str = "Admin User") -> None:
    """Create the administrator account, or reset its password and role if it exists."""

    target = DBConfig.from_dict(db_config)
    email = email.strip().lower()
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)
        password_hash = generate_password_hash(password)
        cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
        existing = cur.fetchone()
        if existing:
            cur.execute(
                "UPDATE users SET full_name=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
                (full_name, password_hash, Role.ADMIN.value, email),
            )
        else:
            cur.execute(
                """
                INSERT INTO users (full_name, email, password_hash, role, department, position, employee_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (full_name, email, password_hash, Role.ADMIN.value, "IT", "Administrator", "ADMIN001"),
            )
        conn.commit()
    finally:
        conn.close()
    logger.info("Admin account ready: %s", email)


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
