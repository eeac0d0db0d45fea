"""
Habit reminders on top of the time-of-day ReminderScheduler.

Every enabled reminder of a habit becomes one ScheduledReminder with id
habit-{habit_id}-{HH:MM}. Scheduler slots are one-shot, so reminders are
registered again when a habit changes, on start-up and once a day.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger

from habits.reminder_filter import HabitReminderPredicate
from habits.store import HabitStore
from models.habit import Habit, HabitReminder
from models.reminder import ReminderPriority, ReminderType, ScheduledReminder
from scheduler.reminders import ReminderScheduler
from utils.constants import DAILY_RESYNC_JOB_ID, DAILY_RESYNC_TIME, HABIT_REMINDER_BODY
from utils.datetime_utils import local_now, parse_time_of_day

logger = logging.getLogger(__name__)


def generate_reminder_id(habit_id: str, time_of_day: str) -> str:
    """Scheduler id of a habit reminder."""
    return f"{ReminderType.HABIT.value}-{habit_id}-{time_of_day}"


class HabitReminderProducer:
    """Registers habit reminders with the scheduler."""

    def __init__(
        self,
        scheduler: ReminderScheduler,
        store: HabitStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._store = store
        self._clock = clock or local_now
        self._unsubscribe: Optional[Callable[[], None]] = None

    def schedule_habit_reminders(self, habit: Habit) -> int:
        """
        Replace all scheduled reminders of a habit with its enabled ones.

        Returns:
            Number of reminders registered
        """
        self.unschedule_habit_reminders(habit.id)
        if habit.is_archived:
            return 0

        registered = 0
        for reminder in habit.reminders:
            if reminder.enabled and self.schedule_habit_reminder(habit, reminder):
                registered += 1
        return registered

    def schedule_habit_reminder(self, habit: Habit, reminder: HabitReminder) -> bool:
        scheduled = ScheduledReminder(
            id=generate_reminder_id(habit.id, reminder.time),
            type=ReminderType.HABIT,
            time=reminder.time,
            title=habit.name,
            body=HABIT_REMINDER_BODY.format(habit_name=habit.name),
            icon=habit.icon,
            priority=ReminderPriority.NORMAL,
            should_show=HabitReminderPredicate(self._store, habit.id, self._clock),
            data={
                "habit_id": habit.id,
                "reminder_id": reminder.id,
                "habit_name": habit.name,
                "habit_icon": habit.icon,
                "habit_color": habit.color,
            },
        )
        registered = self._scheduler.register(scheduled)
        if registered:
            logger.info(f'Scheduled reminder for "{habit.name}" at {reminder.time}')
        return registered

    def unschedule_habit_reminders(self, habit_id: str) -> int:
        """Remove every scheduled reminder of a habit. Returns how many."""
        removed = 0
        for reminder in self._habit_reminders(habit_id):
            if self._scheduler.unregister(reminder.id):
                removed += 1
        if removed:
            logger.info(f"Removed {removed} reminders for habit {habit_id}")
        return removed

    def unschedule_habit_reminder(self, habit_id: str, time_of_day: str) -> bool:
        return self._scheduler.unregister(generate_reminder_id(habit_id, time_of_day))

    def reschedule_habit_reminder(self, habit_id: str, old_time: str, new_time: str) -> bool:
        """Move one habit reminder to another time of day."""
        return self._scheduler.update(
            generate_reminder_id(habit_id, old_time),
            {"id": generate_reminder_id(habit_id, new_time), "time": new_time},
        )

    def has_scheduled_reminders(self, habit_id: str) -> bool:
        return any(True for _ in self._habit_reminders(habit_id))

    def get_scheduled_reminders_count(self, habit_id: str) -> int:
        return sum(1 for _ in self._habit_reminders(habit_id))

    def sync(self, habits: Optional[Iterable[Habit]] = None) -> int:
        """
        Register again the reminders of every habit in the store.

        Returns:
            Number of reminders registered
        """
        if habits is None:
            habits = self._store.list_habits(include_archived=True)
        total = sum(self.schedule_habit_reminders(habit) for habit in habits)
        logger.info(f"Habit reminders synced: {total} scheduled")
        return total

    def attach(self) -> None:
        """Follow store changes: reschedule on upsert, unschedule on removal."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_habit_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def install_daily_resync(
        self, job_scheduler: BaseScheduler, at: str = DAILY_RESYNC_TIME
    ) -> None:
        """Add a cron job that calls sync() every day at the given HH:MM."""
        resync_time = parse_time_of_day(at)
        job_scheduler.add_job(
            self._resync_job,
            trigger=CronTrigger(hour=resync_time.hour, minute=resync_time.minute),
            id=DAILY_RESYNC_JOB_ID,
            name="Re-register habit reminders for the day",
            replace_existing=True,
        )
        logger.info(f"Daily habit reminder resync at {at}")

    async def _resync_job(self) -> None:
        # Runs on the event loop alongside the slot timers
        self.sync()

    def _on_habit_changed(self, habit_id: str, habit: Optional[Habit]) -> None:
        if habit is None:
            self.unschedule_habit_reminders(habit_id)
        else:
            self.schedule_habit_reminders(habit)

    def _habit_reminders(self, habit_id: str) -> Iterable[ScheduledReminder]:
        for reminders in self._scheduler.get_all().values():
            for reminder in reminders:
                if reminder.type == ReminderType.HABIT and reminder.data.get("habit_id") == habit_id:
                    yield reminder
