"""
In-memory habit state.

Holds the habits and vacation periods that reminder predicates read at fire
time. Listeners are told about every habit change so reminders can be
rescheduled right away.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from habits.vacation import is_date_range_overlapping
from models.habit import Habit
from models.vacation import VacationPeriod
from utils.exceptions import HabitNotFoundError, VacationOverlapError

logger = logging.getLogger(__name__)

# Called with (habit_id, habit); habit is None when it was removed
HabitListener = Callable[[str, Optional[Habit]], None]


class HabitStoreSnapshot(BaseModel):
    """Serialized store contents."""

    habits: List[Habit] = Field(default_factory=list)
    vacation_periods: List[VacationPeriod] = Field(default_factory=list)


class HabitStore:
    """Habits and vacation periods of the bot owner."""

    def __init__(
        self,
        habits: Iterable[Habit] = (),
        vacation_periods: Iterable[VacationPeriod] = (),
    ) -> None:
        self._habits: Dict[str, Habit] = {habit.id: habit for habit in habits}
        self._vacation_periods: List[VacationPeriod] = list(vacation_periods)
        self._listeners: List[HabitListener] = []

    def subscribe(self, listener: HabitListener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return self._habits.get(habit_id)

    def list_habits(self, include_archived: bool = False) -> List[Habit]:
        return [h for h in self._habits.values() if include_archived or not h.is_archived]

    def upsert_habit(self, habit: Habit) -> None:
        self._habits[habit.id] = habit
        self._notify(habit.id, habit)

    def remove_habit(self, habit_id: str) -> None:
        if self._habits.pop(habit_id, None) is None:
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        self._notify(habit_id, None)

    def mark_completed(
        self, habit_id: str, day: date, value: Union[bool, float] = True
    ) -> Habit:
        """
        Record a completion (or its removal with value=False) for a day.

        Raises:
            HabitNotFoundError: If the habit does not exist
        """
        habit = self._habits.get(habit_id)
        if habit is None:
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        completions = dict(habit.completions)
        completions[day.isoformat()] = value
        updated = habit.model_copy(update={"completions": completions})
        self._habits[habit_id] = updated
        self._notify(habit_id, updated)
        return updated

    @property
    def vacation_periods(self) -> List[VacationPeriod]:
        return list(self._vacation_periods)

    def add_vacation_period(self, period: VacationPeriod) -> None:
        """
        Add a vacation period.

        Raises:
            VacationOverlapError: If the range overlaps an existing period
        """
        if is_date_range_overlapping(
            period.start_date, period.end_date, self._vacation_periods, exclude_period_id=period.id
        ):
            raise VacationOverlapError(
                f"Vacation {period.start_date}..{period.end_date} overlaps an existing period"
            )
        self._vacation_periods = [p for p in self._vacation_periods if p.id != period.id]
        self._vacation_periods.append(period)

    def remove_vacation_period(self, period_id: str) -> bool:
        before = len(self._vacation_periods)
        self._vacation_periods = [p for p in self._vacation_periods if p.id != period_id]
        return len(self._vacation_periods) != before

    def snapshot(self) -> HabitStoreSnapshot:
        return HabitStoreSnapshot(
            habits=list(self._habits.values()), vacation_periods=self.vacation_periods
        )

    def _notify(self, habit_id: str, habit: Optional[Habit]) -> None:
        for listener in list(self._listeners):
            try:
                listener(habit_id, habit)
            except Exception as e:
                logger.error(f"Habit listener failed for {habit_id}: {e}", exc_info=True)


def load_habit_store(path: Union[str, Path]) -> HabitStore:
    """
    Build a store from a JSON seed file.

    Args:
        path: File with "habits" and "vacation_periods" arrays

    Returns:
        Populated HabitStore
    """
    snapshot = HabitStoreSnapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(
        f"Loaded {len(snapshot.habits)} habits and "
        f"{len(snapshot.vacation_periods)} vacation periods from {path}"
    )
    return HabitStore(snapshot.habits, snapshot.vacation_periods)
