"""Reminder models for the time-of-day scheduler."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.predicate import CallablePredicate, ReminderPredicate
from utils.constants import DEFAULT_GROUPING_MIN_COUNT, TIME_OF_DAY_PATTERN


class ReminderType(str, Enum):
    """Producer category of a reminder, used for grouped display."""

    HABIT = "habit"
    TASK = "task"
    FINANCE = "finance"
    EVENT = "event"
    OTHER = "other"

    @property
    def glyph(self) -> str:
        return REMINDER_TYPE_GLYPHS[self]

    @property
    def label(self) -> str:
        return REMINDER_TYPE_LABELS[self]


REMINDER_TYPE_GLYPHS: Dict[ReminderType, str] = {
    ReminderType.HABIT: "🎯",
    ReminderType.TASK: "✅",
    ReminderType.FINANCE: "💰",
    ReminderType.EVENT: "📅",
    ReminderType.OTHER: "🔔",
}

REMINDER_TYPE_LABELS: Dict[ReminderType, str] = {
    ReminderType.HABIT: "Habits",
    ReminderType.TASK: "Tasks",
    ReminderType.FINANCE: "Finance",
    ReminderType.EVENT: "Events",
    ReminderType.OTHER: "Other",
}

for _mapping_name, _mapping in (
    ("REMINDER_TYPE_GLYPHS", REMINDER_TYPE_GLYPHS),
    ("REMINDER_TYPE_LABELS", REMINDER_TYPE_LABELS),
):
    _missing = set(ReminderType) - set(_mapping)
    if _missing:
        raise RuntimeError(
            f"{_mapping_name} has no entry for: {', '.join(sorted(t.value for t in _missing))}"
        )


class ReminderPriority(str, Enum):
    """Reminder priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class ScheduledReminder(BaseModel):
    """A reminder registered for a wall-clock time of day."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1, description="Unique id, {type}-{entityId}-{HH:MM}")
    type: ReminderType = ReminderType.OTHER
    time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="Time of day, HH:MM")
    title: str
    body: str = ""
    icon: Optional[str] = None
    priority: ReminderPriority = ReminderPriority.NORMAL
    requires_interaction: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)
    should_show: Optional[Any] = Field(default=None, exclude=True)

    @field_validator("should_show", mode="before")
    @classmethod
    def _wrap_predicate(cls, value: Any) -> Optional[ReminderPredicate]:
        if value is None or isinstance(value, ReminderPredicate):
            return value
        if callable(value):
            return CallablePredicate(value)
        raise ValueError("should_show must be a ReminderPredicate or a zero-argument callable")


class GroupingConfig(BaseModel):
    """When simultaneous reminders are merged into one alert."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    min_count: int = Field(default=DEFAULT_GROUPING_MIN_COUNT, ge=1)
    group_by_type: bool = True


class SchedulerStats(BaseModel):
    """Snapshot of the scheduler contents."""

    total_reminders: int = 0
    unique_time_slots: int = 0
    by_type: Dict[ReminderType, int] = Field(
        default_factory=lambda: {reminder_type: 0 for reminder_type in ReminderType}
    )
    max_reminders_in_slot: int = 0
