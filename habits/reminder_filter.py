"""
Fire-time filter for habit reminders.

Evaluated when a reminder is due, so it sees today's completions, the
habit's current frequency and vacation periods rather than the state at
registration time.
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from habits.auto_skip import is_date_auto_skipped
from habits.store import HabitStore
from utils.datetime_utils import local_now

logger = logging.getLogger(__name__)


def should_show_habit_reminder(store: HabitStore, habit_id: str, today: date) -> bool:
    """
    Decide whether a habit still needs a reminder today.

    Args:
        store: Habit state
        habit_id: Habit to check
        today: Current local date

    Returns:
        False if the habit is gone, archived, not started yet, auto-skipped
        today or already completed today; True otherwise
    """
    habit = store.get_habit(habit_id)
    if habit is None:
        logger.info(f"Habit {habit_id} not found")
        return False

    if habit.is_archived:
        logger.info(f'Habit "{habit.name}" is archived')
        return False

    if today < habit.effective_start_date:
        logger.info(f'Habit "{habit.name}" has not started yet (start: {habit.effective_start_date})')
        return False

    if is_date_auto_skipped(habit, today, store.vacation_periods):
        logger.info(f'Habit "{habit.name}" is auto-skipped on {today}')
        return False

    if habit.is_completed_on(today):
        logger.info(f'Habit "{habit.name}" is already completed today')
        return False

    return True


class HabitReminderPredicate:
    """ReminderPredicate for one habit. Fails open on internal errors."""

    __slots__ = ("_store", "_habit_id", "_clock")

    def __init__(
        self,
        store: HabitStore,
        habit_id: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._habit_id = habit_id
        self._clock = clock or local_now

    @property
    def habit_id(self) -> str:
        return self._habit_id

    def should_show(self) -> bool:
        try:
            return should_show_habit_reminder(self._store, self._habit_id, self._clock().date())
        except Exception as e:
            logger.error(f"Reminder check failed for habit {self._habit_id}: {e}", exc_info=True)
            return True
