"""Time and string helpers shared by models and services."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC window [start, end) covering one calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def parse_day(value: str | date | datetime) -> date:
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    s = (value or "").strip()
    if not s:
        raise ValueError("empty date")
    # Accept full ISO timestamps as well as plain YYYY-MM-DD
    return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00"))).date() if "T" in s else date.fromisoformat(s)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()
