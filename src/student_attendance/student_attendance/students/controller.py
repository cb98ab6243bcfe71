from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import today_local
from ..common.pagination import PageRequest
from ..common.responses import json_body, ok, paged
from ..common.validators import parse_branch, parse_year
from ..container import Container


def _optional_year(value):
    return parse_year(value) if value not in (None, "") else None


def _optional_branch(value):
    return parse_branch(value) if value not in (None, "") else None


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    students = container.student_service

    def _today():
        return today_local(container.timezone)

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    @guards.protect
    def create_student():
        student = students.register(json_body(), today=_today())
        return ok(student.to_dict(), message="Student added successfully", status=201)

    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @guards.protect
    def list_students():
        page = students.list_students(
            branch=_optional_branch(request.args.get("branch")),
            year=_optional_year(request.args.get("year")),
            page=PageRequest.from_args(request.args),
        )
        return paged(page, lambda s: s.to_dict())

    @app.route("/api/students/statistics", methods=["GET"], endpoint="students_statistics")
    @guards.protect
    def statistics():
        return ok(students.statistics())

    @app.route("/api/students/branches", methods=["GET"], endpoint="students_branches")
    @guards.protect
    def branches():
        data = list(students.branches())
        return ok(data, count=len(data))

    @app.route("/api/students/branch/<branch>", methods=["GET"], endpoint="students_by_branch")
    @guards.protect
    def by_branch(branch: str):
        rows = students.by_branch(parse_branch(branch), year=_optional_year(request.args.get("year")))
        return ok([s.to_dict() for s in rows], count=len(rows))

    @app.route("/api/students/year/<year>", methods=["GET"], endpoint="students_by_year")
    @guards.protect
    def by_year(year: str):
        rows = students.by_year(parse_year(year), branch=_optional_branch(request.args.get("branch")))
        return ok([s.to_dict() for s in rows], count=len(rows))

    @app.route("/api/students/attendance/<year>/<branch>", methods=["GET"], endpoint="students_roster")
    @guards.protect
    def roster(year: str, branch: str):
        rows = students.cohort_roster(year=parse_year(year), branch=parse_branch(branch))
        return ok([s.to_dict() for s in rows], count=len(rows))

    @app.route("/api/students/search/<uid>", methods=["GET"], endpoint="students_search")
    @guards.protect
    def search(uid: str):
        return ok(students.search(uid).to_dict())

    @app.route("/api/students/branch/<branch>", methods=["PUT"], endpoint="students_bulk_update_branch")
    @guards.protect
    def bulk_update_by_branch(branch: str):
        body = json_body()
        modified = students.bulk_update(
            branch=parse_branch(branch),
            year=_optional_year(body.get("year")),
            update_data=body.get("updateData"),
            today=_today(),
        )
        return ok(message=f"Updated {modified} students", modifiedCount=modified)

    @app.route("/api/students/year/<year>", methods=["PUT"], endpoint="students_bulk_update_year")
    @guards.protect
    def bulk_update_by_year(year: str):
        body = json_body()
        modified = students.bulk_update(
            year=parse_year(year),
            branch=_optional_branch(body.get("branch")),
            update_data=body.get("updateData"),
            today=_today(),
        )
        return ok(message=f"Updated {modified} students", modifiedCount=modified)

    @app.route("/api/students/branch/<branch>", methods=["DELETE"], endpoint="students_bulk_delete_branch")
    @guards.protect
    def bulk_delete_by_branch(branch: str):
        deleted = students.bulk_delete(branch=parse_branch(branch), year=_optional_year(request.args.get("year")))
        return ok(message=f"Deleted {deleted} students", deletedCount=deleted)

    @app.route("/api/students/year/<year>", methods=["DELETE"], endpoint="students_bulk_delete_year")
    @guards.protect
    def bulk_delete_by_year(year: str):
        deleted = students.bulk_delete(year=parse_year(year), branch=_optional_branch(request.args.get("branch")))
        return ok(message=f"Deleted {deleted} students", deletedCount=deleted)

    @app.route("/api/students/<uid>", methods=["PUT"], endpoint="students_update")
    @guards.protect
    def update_student(uid: str):
        student = students.update(uid, json_body(), today=_today())
        return ok(student.to_dict(), message="Student updated successfully")

    @app.route("/api/students/<uid>", methods=["DELETE"], endpoint="students_delete")
    @guards.protect
    def delete_student(uid: str):
        students.delete(uid)
        return ok(message="Student deleted successfully")
