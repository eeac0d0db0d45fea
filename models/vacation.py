"""Vacation period models."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class VacationPeriodStatus(str, Enum):
    """Where a period sits relative to today."""

    ACTIVE = "active"
    UPCOMING = "upcoming"
    PAST = "past"


class VacationPeriod(BaseModel):
    """A date range during which habits are paused."""

    id: str
    reason: str = Field(..., min_length=1)
    icon: Optional[str] = None
    start_date: date
    end_date: date
    apply_to_all: bool = True
    habit_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_range(self) -> "VacationPeriod":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def covers(self, day: date, habit_id: str) -> bool:
        """True when day is inside the period and the period applies to the habit."""
        if not self.start_date <= day <= self.end_date:
            return False
        return self.apply_to_all or habit_id in self.habit_ids
