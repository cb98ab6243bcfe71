from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional, Sequence

from ..attendance.model import MarkingActivity
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, week_bounds
from ..common.pagination import PageRequest
from ..core.constants import DEFAULT_ACTIVITY_DAYS
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository


def _rate(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def _totals(rows: Sequence[MarkingActivity]) -> dict:
    return {
        "recordsMarked": sum(r.marked for r in rows),
        "recordsUpdated": sum(r.updated for r in rows),
        "cohortsMarked": sum(1 for r in rows if r.marked),
    }


class TeamService:
    """Staff accounts grouped by department, with their attendance-marking activity.

    A member counts as active on a day when they marked or updated any record
    of a cohort dated that day.
    """

    def __init__(self, users: UserRepository, attendance: AttendanceRepository):
        self._users = users
        self._attendance = attendance

    def _active_ids(self, user_ids: Sequence[int], *, start: date, end: date) -> set[int]:
        rows = self._attendance.activity_rows(start=start, end=end, user_ids=user_ids)
        return {r.user_id for r in rows}

    def departments(self, *, today: date) -> list[dict]:
        out = []
        for dept in self._users.distinct_departments():
            members = self._users.list_active(department=dept)
            active = self._active_ids([m.user_id for m in members], start=today, end=today)
            out.append(
                {
                    "name": dept,
                    "totalUsers": len(members),
                    "activeToday": len(active),
                    "activityRate": _rate(len(active), len(members)),
                }
            )
        return out

    def department_members(self, department: str, *, page: PageRequest, today: date) -> dict:
        members = self._users.list_active(department=department, offset=page.offset, limit=page.limit)
        total = self._users.count_active(department=department)

        per_user: dict[int, list[MarkingActivity]] = defaultdict(list)
        for r in self._attendance.activity_rows(start=today, end=today, user_ids=[m.user_id for m in members]):
            per_user[r.user_id].append(r)

        return {
            "department": department,
            "users": [
                {**m.to_dict(), "today": _totals(per_user.get(m.user_id, []))}
                for m in members
            ],
            "pagination": {
                "current": page.page,
                "pages": math.ceil(total / page.limit),
                "total": total,
            },
        }

    def member(self, user_id: int, *, today: date) -> dict:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        recent = self._attendance.activity_rows(
            start=today - timedelta(days=DEFAULT_ACTIVITY_DAYS), end=today, user_ids=[user.user_id]
        )
        month_start, month_end = month_bounds(today)
        month = self._attendance.activity_rows(start=month_start, end=month_end, user_ids=[user.user_id])

        return {
            "user": user.to_dict(),
            "recentActivity": [
                {
                    "date": r.att_date.isoformat(),
                    "year": r.year,
                    "branch": r.branch,
                    "marked": r.marked,
                    "updated": r.updated,
                }
                for r in sorted(recent, key=lambda r: (r.att_date, r.branch, r.year), reverse=True)
            ],
            "monthlyStats": _totals(month),
        }

    def overview(self, *, today: date, department: Optional[str] = None) -> dict:
        members = self._users.list_active(department=department)
        ids = [m.user_id for m in members]

        today_rows = self._attendance.activity_rows(start=today, end=today, user_ids=ids)
        week_start, week_end = week_bounds(today)
        week_rows = self._attendance.activity_rows(start=week_start, end=week_end, user_ids=ids)

        active = {r.user_id for r in today_rows}
        return {
            "totalMembers": len(members),
            "today": {
                "activeMembers": len(active),
                "activityRate": _rate(len(active), len(members)),
                **_totals(today_rows),
            },
            "thisWeek": _totals(week_rows),
        }
