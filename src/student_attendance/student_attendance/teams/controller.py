from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import today_local
from ..common.pagination import PageRequest
from ..common.responses import ok
from ..common.validators import parse_int
from ..container import Container
from ..core.exceptions import NotFoundError
from ..users.guards import MANAGERS, current_user
from ..users.service import AuthService


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    teams = container.team_service
    tz = container.timezone

    @app.route("/api/teams/departments", methods=["GET"], endpoint="teams_departments")
    @guards.authorize(*MANAGERS)
    def departments():
        data = teams.departments(today=today_local(tz))
        return ok(data, count=len(data))

    @app.route("/api/teams/department/<department>", methods=["GET"], endpoint="teams_department")
    @guards.authorize(*MANAGERS)
    def department(department: str):
        return ok(
            teams.department_members(
                department, page=PageRequest.from_args(request.args), today=today_local(tz)
            )
        )

    @app.route("/api/teams/member/<user_id>", methods=["GET"], endpoint="teams_member")
    @guards.protect
    def member(user_id: str):
        uid = parse_int(user_id)
        if uid is None:
            raise NotFoundError("User not found")
        AuthService.authorize_self_or(current_user(), uid, *MANAGERS)
        return ok(teams.member(uid, today=today_local(tz)))

    @app.route("/api/teams/overview", methods=["GET"], endpoint="teams_overview")
    @guards.authorize(*MANAGERS)
    def overview():
        department = request.args.get("department") or None
        return ok(teams.overview(today=today_local(tz), department=department))
