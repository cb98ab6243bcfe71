from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_local, optional_day, to_local_day, today_local
from ..common.pagination import PageRequest
from ..common.responses import json_body, ok, paged
from ..common.validators import parse_branch, parse_int, parse_status, parse_year
from ..container import Container
from ..core.exceptions import NotFoundError, ValidationError
from ..users.guards import current_user
from .model import AttendanceFilter


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    attendance = container.attendance_service
    students = container.student_service
    tz = container.timezone

    def _range():
        return (
            optional_day(request.args.get("startDate"), tz, field_name="startDate"),
            optional_day(request.args.get("endDate"), tz, field_name="endDate"),
        )

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @guards.protect
    def mark():
        body = json_body()
        if not body.get("year") or not body.get("branch") or not body.get("date") or body.get("attendanceData") is None:
            raise ValidationError("Year, branch, date, and attendance data are required")

        saved = attendance.mark_cohort(
            year=parse_year(body.get("year")),
            branch=parse_branch(body.get("branch")),
            day=to_local_day(str(body.get("date")), tz),
            entries=body.get("attendanceData"),
            actor_id=current_user().user_id,
        )
        return ok(
            [r.to_dict() for r in saved],
            message=f"Attendance marked for {len(saved)} students",
            status=201,
        )

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guards.protect
    def today():
        rows = attendance.todays_attendance(today=today_local(tz))
        return ok([r.to_dict() for r in rows], count=len(rows))

    @app.route("/api/attendance/statistics/<year>/<branch>", methods=["GET"], endpoint="attendance_statistics")
    @guards.protect
    def statistics(year: str, branch: str):
        start, end = _range()
        rows = attendance.statistics_for(year=parse_year(year), branch=parse_branch(branch), start=start, end=end)
        return ok([r.to_dict() for r in rows])

    @app.route("/api/attendance/student/<student_id>", methods=["GET"], endpoint="attendance_student")
    @guards.protect
    def student_history(student_id: str):
        sid = parse_int(student_id)
        if sid is None:
            raise NotFoundError("Student not found")
        start, end = _range()
        # Unknown and deleted students are a 404
        students.get(sid)
        rows = attendance.history_for(student_id=sid, start=start, end=end)
        return ok([r.to_dict() for r in rows], count=len(rows))

    @app.route("/api/attendance/<year>/<branch>/<day>", methods=["GET"], endpoint="attendance_cohort_day")
    @guards.protect
    def cohort_day(year: str, branch: str, day: str):
        rows = attendance.cohort_day(year=parse_year(year), branch=parse_branch(branch), day=to_local_day(day, tz))
        return ok([r.to_dict() for r in rows], count=len(rows))

    @app.route("/api/attendance/<year>/<branch>/<day>", methods=["PUT"], endpoint="attendance_cohort_update")
    @guards.protect
    def cohort_update(year: str, branch: str, day: str):
        body = json_body()
        updated = attendance.update_cohort(
            year=parse_year(year),
            branch=parse_branch(branch),
            day=to_local_day(day, tz),
            entries=body.get("attendanceData"),
            actor_id=current_user().user_id,
            now=now_local(tz),
        )
        return ok(message=f"Attendance updated for {updated} students", updatedCount=updated)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @guards.protect
    def list_attendance():
        args = request.args
        flt = AttendanceFilter(
            year=parse_year(args["year"]) if args.get("year") else None,
            branch=parse_branch(args["branch"]) if args.get("branch") else None,
            att_date=optional_day(args.get("date"), tz, field_name="date"),
            status=parse_status(args["status"]) if args.get("status") else None,
        )
        page = attendance.search(flt, page=PageRequest.from_args(args))
        return paged(page, lambda r: r.to_dict())
