"""
Pytest configuration and shared fixtures.
"""

from datetime import date, datetime
from typing import List, Optional
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from models.habit import Habit, HabitReminder
from models.notification import NotificationConfig, PermissionStatus
from models.reminder import ReminderType, ScheduledReminder
from scheduler.reminders import ReminderScheduler

PRAGUE = ZoneInfo("Europe/Prague")


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with patch("config.settings") as mock_settings:
        mock_settings.bot_token = "test_token"
        mock_settings.owner_chat_id = None
        mock_settings.app_url = None
        mock_settings.timezone = "Europe/Prague"
        mock_settings.reminder_grouping_enabled = True
        mock_settings.reminder_grouping_min_count = 2
        mock_settings.reminder_grouping_by_type = True
        mock_settings.daily_resync_time = "00:01"
        mock_settings.environment = "test"
        mock_settings.host = "0.0.0.0"
        mock_settings.port = 8000
        mock_settings.bot_webhook_url = None
        yield mock_settings


class FakeSink:
    """NotificationSink that records what it is asked to show."""

    def __init__(self, fail_titles: Optional[List[str]] = None) -> None:
        self.shown: List[NotificationConfig] = []
        self.cancelled: List[str] = []
        self.fail_titles = set(fail_titles or [])

    def is_supported(self) -> bool:
        return True

    def get_permission_status(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def show(self, config: NotificationConfig):
        if config.title in self.fail_titles:
            raise RuntimeError(f"cannot show {config.title}")
        self.shown.append(config)
        return lambda: self.cancelled.append(config.tag)


class FixedClock:
    """Settable clock returning an aware datetime."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fake_sink():
    return FakeSink()


@pytest.fixture
def clock():
    """08:00 local time on Monday 2026-03-02."""
    return FixedClock(datetime(2026, 3, 2, 8, 0, tzinfo=PRAGUE))


@pytest.fixture
def job_scheduler():
    """Mock APScheduler that records add_job calls instead of running them."""
    mock_scheduler = MagicMock()
    mock_scheduler.running = False
    mock_scheduler.add_job.side_effect = lambda *args, **kwargs: MagicMock(id=kwargs.get("id"))
    return mock_scheduler


@pytest.fixture
def reminder_scheduler(fake_sink, job_scheduler, clock):
    return ReminderScheduler(fake_sink, job_scheduler, clock=clock)


async def fire_slot(job_scheduler: MagicMock, time_key: str):
    """Run the callback of the most recent job armed for time_key."""
    for call in reversed(job_scheduler.add_job.call_args_list):
        if call.kwargs.get("args", [None])[0] == time_key:
            return await call.args[0](*call.kwargs["args"])
    raise AssertionError(f"No job armed for {time_key}")


def make_reminder(
    reminder_id: str,
    time: str = "09:00",
    reminder_type: ReminderType = ReminderType.OTHER,
    title: Optional[str] = None,
    **kwargs,
) -> ScheduledReminder:
    return ScheduledReminder(
        id=reminder_id,
        type=reminder_type,
        time=time,
        title=title or reminder_id,
        **kwargs,
    )


def make_habit(habit_id: str = "h1", name: str = "Read", **kwargs) -> Habit:
    kwargs.setdefault("created_at", datetime(2026, 1, 1, 8, 0))
    kwargs.setdefault("start_date", date(2026, 1, 1))
    kwargs.setdefault("reminders", [HabitReminder(id="r1", time="09:00")])
    return Habit(id=habit_id, name=name, **kwargs)
