"""Vacation period rules."""

from datetime import date
from typing import Iterable, List, Optional

from models.vacation import VacationPeriod, VacationPeriodStatus


def is_date_in_vacation(day: date, habit_id: str, periods: Iterable[VacationPeriod]) -> bool:
    """True when any period covering day applies to the habit."""
    return any(period.covers(day, habit_id) for period in periods)


def get_vacation_period_for_date(
    day: date, habit_id: str, periods: Iterable[VacationPeriod]
) -> Optional[VacationPeriod]:
    return next((period for period in periods if period.covers(day, habit_id)), None)


def get_vacation_period_status(period: VacationPeriod, today: date) -> VacationPeriodStatus:
    if today > period.end_date:
        return VacationPeriodStatus.PAST
    if today < period.start_date:
        return VacationPeriodStatus.UPCOMING
    return VacationPeriodStatus.ACTIVE


def is_date_range_overlapping(
    start: date,
    end: date,
    periods: Iterable[VacationPeriod],
    exclude_period_id: Optional[str] = None,
) -> bool:
    """
    Check whether [start, end] intersects any existing period.

    Args:
        start: First day of the new range
        end: Last day of the new range
        periods: Existing periods
        exclude_period_id: Period being edited, ignored in the check

    Returns:
        True if the ranges overlap
    """
    for period in periods:
        if exclude_period_id and period.id == exclude_period_id:
            continue
        if not (end < period.start_date or period.end_date < start):
            return True
    return False


def sort_vacation_periods(periods: Iterable[VacationPeriod], today: date) -> List[VacationPeriod]:
    """Active and upcoming by start date first, then past ones, most recent first."""
    current = []
    past = []
    for period in periods:
        if get_vacation_period_status(period, today) == VacationPeriodStatus.PAST:
            past.append(period)
        else:
            current.append(period)
    current.sort(key=lambda p: p.start_date)
    past.sort(key=lambda p: p.end_date, reverse=True)
    return current + past


def count_vacation_days(days: Iterable[date], habit_id: str, periods: Iterable[VacationPeriod]) -> int:
    """Number of days that fall in a vacation applying to the habit."""
    periods = list(periods)
    return sum(1 for day in days if is_date_in_vacation(day, habit_id, periods))
