"""Habit models for the tracker."""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from utils.constants import TIME_OF_DAY_PATTERN


class HabitType(str, Enum):
    """How a habit is tracked."""

    BINARY = "binary"
    MEASURABLE = "measurable"


class FrequencyType(str, Enum):
    """How often a habit is expected to be done."""

    BY_DAYS_OF_WEEK = "by_days_of_week"
    EVERY_N_DAYS = "every_n_days"
    N_TIMES_WEEK = "n_times_week"
    N_TIMES_MONTH = "n_times_month"


class FrequencyConfig(BaseModel):
    """Frequency settings of a habit."""

    type: FrequencyType
    days_of_week: List[int] = Field(
        default_factory=list, description="0 = Sunday ... 6 = Saturday"
    )
    count: Optional[int] = Field(default=None, ge=0)
    period: Optional[int] = Field(default=None, ge=1)


class HabitReminder(BaseModel):
    """A reminder time configured on a habit."""

    id: str
    time: str = Field(..., pattern=TIME_OF_DAY_PATTERN)
    enabled: bool = True


class Habit(BaseModel):
    """Habit model."""

    id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    type: HabitType = HabitType.BINARY
    created_at: datetime
    start_date: Optional[date] = None
    completions: Dict[str, Union[bool, float]] = Field(
        default_factory=dict, description="YYYY-MM-DD -> done flag or measured value"
    )
    frequency: Optional[FrequencyConfig] = None
    reminders: List[HabitReminder] = Field(default_factory=list)
    is_archived: bool = False

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "123",
                "name": "Morning exercise",
                "icon": "💪",
                "created_at": "2026-01-10T08:00:00",
                "start_date": "2026-01-10",
                "frequency": {"type": "by_days_of_week", "days_of_week": [1, 3, 5]},
                "reminders": [{"id": "r1", "time": "09:00", "enabled": True}],
            }
        }
    }

    @property
    def effective_start_date(self) -> date:
        """Start date, falling back to the creation day."""
        return self.start_date or self.created_at.date()

    def is_completed_on(self, day: Union[date, str]) -> bool:
        """True when the day holds a completion (True or any measured value)."""
        key = day if isinstance(day, str) else day.isoformat()
        value = self.completions.get(key)
        if isinstance(value, bool):
            return value
        return isinstance(value, (int, float))
