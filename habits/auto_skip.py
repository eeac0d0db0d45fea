"""
Auto-skip rules.

A day is auto-skipped when the habit's frequency does not expect it to be
done that day: it is not one of the chosen weekdays, it falls between
"every N days" occurrences, or the weekly/monthly target is already met.
Vacation days lower the weekly/monthly target.
"""

from datetime import date
from typing import Iterable, Sequence

from habits.vacation import count_vacation_days
from models.habit import FrequencyType, Habit
from models.vacation import VacationPeriod
from utils.datetime_utils import dates_in_range, js_weekday, month_bounds, week_bounds


def is_date_auto_skipped(
    habit: Habit, day: date, vacation_periods: Iterable[VacationPeriod] = ()
) -> bool:
    """
    Whether day is an auto-skip for habit.

    Args:
        habit: Habit to check
        day: Day to check
        vacation_periods: Vacation periods of the user

    Returns:
        True if the habit is not expected to be done that day
    """
    start = habit.effective_start_date
    if day < start:
        return False
    if habit.is_completed_on(day):
        return False

    frequency = habit.frequency
    if frequency is None:
        return False

    if frequency.type == FrequencyType.BY_DAYS_OF_WEEK and frequency.days_of_week:
        return js_weekday(day) not in frequency.days_of_week

    if frequency.type == FrequencyType.EVERY_N_DAYS and frequency.period is not None:
        if frequency.period == 1:
            return False
        days_since_start = (day - start).days
        return days_since_start % frequency.period != 0

    if frequency.type == FrequencyType.N_TIMES_WEEK and frequency.count is not None:
        period_start, period_end = week_bounds(day)
        return _target_reached(habit, period_start, period_end, frequency.count, vacation_periods)

    if frequency.type == FrequencyType.N_TIMES_MONTH and frequency.count is not None:
        period_start, period_end = month_bounds(day)
        return _target_reached(habit, period_start, period_end, frequency.count, vacation_periods)

    return False


def _target_reached(
    habit: Habit,
    period_start: date,
    period_end: date,
    count: int,
    vacation_periods: Iterable[VacationPeriod],
) -> bool:
    start = habit.effective_start_date
    active_days = [d for d in dates_in_range(period_start, period_end) if d >= start]
    available_days = len(active_days) - count_vacation_days(active_days, habit.id, vacation_periods)
    target = min(count, max(0, available_days))
    return count_completions(habit, active_days) >= target


def count_completions(habit: Habit, days: Sequence[date]) -> int:
    """Completed days among days, including future ones."""
    return sum(1 for day in days if habit.is_completed_on(day))
