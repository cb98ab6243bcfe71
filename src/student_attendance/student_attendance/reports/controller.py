from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import optional_day, today_local
from ..common.responses import ok
from ..common.validators import parse_branch, parse_int, parse_year
from ..container import Container
from ..core.exceptions import NotFoundError, ValidationError
from ..users.guards import MANAGERS


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    reports = container.report_service
    tz = container.timezone

    def _range() -> dict:
        return {
            "today": today_local(tz),
            "start": optional_day(request.args.get("startDate"), tz, field_name="startDate"),
            "end": optional_day(request.args.get("endDate"), tz, field_name="endDate"),
        }

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="reports_dashboard")
    @guards.authorize(*MANAGERS)
    def dashboard():
        return ok(reports.dashboard(today=today_local(tz)))

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="reports_attendance")
    @guards.authorize(*MANAGERS)
    def attendance_report():
        args = request.args
        student_id = None
        if args.get("studentId"):
            student_id = parse_int(args["studentId"])
            if student_id is None:
                raise ValidationError("Invalid studentId", [{"field": "studentId", "message": "Must be an integer"}])
        return ok(
            reports.attendance_report(
                branch=parse_branch(args["branch"]) if args.get("branch") else None,
                year=parse_year(args["year"]) if args.get("year") else None,
                student_id=student_id,
                **_range(),
            )
        )

    @app.route("/api/reports/student/<student_id>", methods=["GET"], endpoint="reports_student")
    @guards.protect
    def student_report(student_id: str):
        sid = parse_int(student_id)
        if sid is None:
            raise NotFoundError("Student not found")
        return ok(reports.student_report(student_id=sid, **_range()))

    @app.route("/api/reports/branch/<branch>", methods=["GET"], endpoint="reports_branch")
    @guards.authorize(*MANAGERS)
    def branch_report(branch: str):
        return ok(reports.branch_report(branch=parse_branch(branch), **_range()))
