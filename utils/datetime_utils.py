"""
Datetime utilities for consistent timezone handling across the application.
All datetime operations should use timezone-aware datetimes.
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.constants import TIME_OF_DAY_PATTERN

_TIME_OF_DAY_RE = re.compile(TIME_OF_DAY_PATTERN)


def get_timezone(name: Optional[str]) -> tzinfo:
    """
    Resolve an IANA timezone name, falling back to UTC.

    Args:
        name: Timezone name such as "Europe/Prague"

    Returns:
        tzinfo instance
    """
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current time in the given timezone (UTC when not set)."""
    return datetime.now(get_timezone(tz_name))


def is_valid_time_of_day(value: str) -> bool:
    """Check that value is a 24h "HH:MM" string."""
    return isinstance(value, str) and bool(_TIME_OF_DAY_RE.match(value))


def parse_time_of_day(value: str) -> time:
    """
    Parse "HH:MM" into a time object.

    Args:
        value: Time of day, 24h, minute resolution

    Returns:
        time instance

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not is_valid_time_of_day(value):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def next_occurrence(time_of_day: str, now: datetime) -> datetime:
    """
    Next moment the wall clock shows time_of_day.

    Today if that moment is still in the future, otherwise tomorrow.
    The result carries the tzinfo of now.

    Args:
        time_of_day: "HH:MM"
        now: Reference datetime

    Returns:
        Datetime of the next occurrence
    """
    target = parse_time_of_day(time_of_day)
    scheduled = datetime.combine(now.date(), target, tzinfo=now.tzinfo)
    if scheduled <= now:
        scheduled = datetime.combine(now.date() + timedelta(days=1), target, tzinfo=now.tzinfo)
    return scheduled


def dates_in_range(start: date, end: date) -> List[date]:
    """All dates from start to end inclusive."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing day."""
    week_start = day - timedelta(days=day.weekday())
    return week_start, week_start + timedelta(days=6)


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of the month containing day."""
    month_start = day.replace(day=1)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)
    return month_start, next_month - timedelta(days=1)


def js_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7
