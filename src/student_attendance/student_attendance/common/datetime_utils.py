from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError


def get_zone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone: {name!r}")


def now_local(tz: ZoneInfo) -> datetime:
    """Current time in the configured zone.

    Note: Wrapped so tests can patch/mock easier. Only the HTTP layer calls it;
    services get the day passed in.
    """
    return datetime.now(tz)


def today_local(tz: ZoneInfo) -> date:
    return now_local(tz).date()


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def to_local_day(value: str, tz: ZoneInfo, *, field_name: str = "date") -> date:
    """Truncate a date or datetime string to its calendar day in ``tz``.

    Plain ``YYYY-MM-DD`` is taken as-is. Datetimes with an offset are converted
    into ``tz`` first; naive datetimes are assumed to already be local.
    """

    raw = (value or "").strip()
    if not raw:
        raise ValidationError(f"{field_name} is required", [{"field": field_name, "message": "Date is required"}])

    try:
        return parse_iso_date(raw)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name}",
            [{"field": field_name, "message": "Date must be YYYY-MM-DD or an ISO 8601 datetime"}],
        )

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def optional_day(value: Optional[str], tz: ZoneInfo, *, field_name: str) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return to_local_day(str(value), tz, field_name=field_name)


def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def week_bounds(day: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)
