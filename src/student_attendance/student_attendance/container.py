from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import get_zone
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .teams.service import TeamService
from .users.guards import Guards
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    timezone: ZoneInfo

    users_repo: UserRepository
    students_repo: StudentRepository
    attendance_repo: AttendanceRepository

    tokens: TokenService
    auth_service: AuthService
    guards: Guards
    student_service: StudentService
    attendance_service: AttendanceService
    report_service: ReportService
    team_service: TeamService


def assemble(
    *,
    users_repo: UserRepository,
    students_repo: StudentRepository,
    attendance_repo: AttendanceRepository,
    tokens: TokenService,
    timezone: ZoneInfo,
) -> Container:
    """Wire services around already-built repositories (MySQL or in-memory)."""

    auth_service = AuthService(users_repo, tokens)
    return Container(
        timezone=timezone,
        users_repo=users_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        auth_service=auth_service,
        guards=Guards(auth_service),
        student_service=StudentService(students_repo),
        attendance_service=AttendanceService(attendance_repo, students_repo),
        report_service=ReportService(attendance_repo, students_repo),
        team_service=TeamService(users_repo, attendance_repo),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    timezone: Optional[str] = None,
    jwt_algorithm: str = "HS256",
    token_minutes: int = 60 * 24,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        tokens=TokenService(secret_key, algorithm=jwt_algorithm, expire_minutes=token_minutes),
        timezone=get_zone(timezone),
    )
