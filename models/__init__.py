"""Pydantic models for data validation and serialization."""

from .habit import FrequencyConfig, FrequencyType, Habit, HabitReminder, HabitType
from .notification import NotificationConfig, PermissionStatus
from .predicate import CallablePredicate, ReminderPredicate
from .reminder import (
    GroupingConfig,
    ReminderPriority,
    ReminderType,
    ScheduledReminder,
    SchedulerStats,
)
from .vacation import VacationPeriod, VacationPeriodStatus

__all__ = [
    "CallablePredicate",
    "FrequencyConfig",
    "FrequencyType",
    "GroupingConfig",
    "Habit",
    "HabitReminder",
    "HabitType",
    "NotificationConfig",
    "PermissionStatus",
    "ReminderPredicate",
    "ReminderPriority",
    "ReminderType",
    "ScheduledReminder",
    "SchedulerStats",
    "VacationPeriod",
    "VacationPeriodStatus",
]
