"""Habit domain: state, frequency rules and reminder production."""

from .auto_skip import is_date_auto_skipped
from .notifications import HabitReminderProducer, generate_reminder_id
from .reminder_filter import HabitReminderPredicate, should_show_habit_reminder
from .store import HabitStore, HabitStoreSnapshot, load_habit_store

__all__ = [
    "HabitReminderPredicate",
    "HabitReminderProducer",
    "HabitStore",
    "HabitStoreSnapshot",
    "generate_reminder_id",
    "is_date_auto_skipped",
    "load_habit_store",
    "should_show_habit_reminder",
]
