"""
Time-of-day reminder scheduler.

Producers register reminders for a wall-clock time. One APScheduler job is
armed per distinct time; when it fires the slot is taken out of the registry,
predicates are evaluated and the survivors are delivered one by one or as a
single grouped alert.

Slots are one-shot: nothing is re-armed for the next day after a firing.
Producers re-register (see habits.notifications).
"""

import functools
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from pydantic import ValidationError

from config import settings
from models.reminder import GroupingConfig, ScheduledReminder, SchedulerStats
from notifications.base import NotificationSink
from scheduler.dispatcher import DeliveryDispatcher, DispatchReport
from scheduler.registry import ReminderRegistry
from scheduler.timers import TimerArmer
from utils.datetime_utils import get_timezone, local_now

logger = logging.getLogger(__name__)


def create_job_scheduler(timezone: Optional[str] = None) -> AsyncIOScheduler:
    """
    Create the in-memory job scheduler that runs reminder timers.

    Jobs live on the asyncio event loop and are not persisted, so reminders
    must be registered again after a restart.
    """
    tz_name = timezone or settings.timezone
    logger.info(f"Scheduler using in-memory backend ({tz_name})")
    return AsyncIOScheduler(timezone=get_timezone(tz_name))


def grouping_config_from_settings() -> GroupingConfig:
    return GroupingConfig(
        enabled=settings.reminder_grouping_enabled,
        min_count=settings.reminder_grouping_min_count,
        group_by_type=settings.reminder_grouping_by_type,
    )


class ReminderScheduler:
    """Register/unregister reminders and deliver them at their time of day."""

    def __init__(
        self,
        sink: NotificationSink,
        job_scheduler: BaseScheduler,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[GroupingConfig] = None,
    ) -> None:
        self._job_scheduler = job_scheduler
        self._registry = ReminderRegistry()
        self._timers = TimerArmer(job_scheduler, self._on_slot_due, clock)
        self._dispatcher = DeliveryDispatcher(sink)
        self._config = config.model_copy() if config else GroupingConfig()

    @property
    def sink(self) -> NotificationSink:
        return self._dispatcher.sink

    @property
    def job_scheduler(self) -> BaseScheduler:
        return self._job_scheduler

    def register(self, reminder: ScheduledReminder) -> bool:
        """
        Register a reminder.

        Args:
            reminder: Reminder with a unique id

        Returns:
            True if registered, False if the id is already registered
        """
        if not self._registry.add(reminder):
            logger.warning(f"Duplicate reminder: {reminder.id}")
            return False

        self._timers.arm(reminder.time)
        logger.info(f"Registered {reminder.id} at {reminder.time}")
        return True

    def unregister(self, reminder_id: str) -> bool:
        """
        Remove a reminder. The slot's timer is cancelled when the slot empties.

        Returns:
            True if a reminder was removed
        """
        removed = self._registry.remove(reminder_id)
        if removed is None:
            return False

        if not self._registry.has_slot(removed.time):
            self._timers.cancel(removed.time)
        logger.info(f"Unregistered {reminder_id}")
        return True

    def update(self, reminder_id: str, updates: Dict[str, Any]) -> bool:
        """
        Replace a reminder with a copy that has updates applied.

        A changed time moves the reminder to another slot. The registry is
        left untouched when the id is unknown, the updated reminder is
        invalid or its new id belongs to another reminder.

        Returns:
            True if the updated reminder is registered
        """
        existing = self._registry.find(reminder_id)
        if existing is None:
            return False

        unknown = set(updates) - set(ScheduledReminder.model_fields)
        if unknown:
            logger.warning(f"Cannot update {reminder_id}: unknown fields {sorted(unknown)}")
            return False

        fields = {name: getattr(existing, name) for name in ScheduledReminder.model_fields}
        fields.update(updates)
        try:
            updated = ScheduledReminder(**fields)
        except ValidationError as e:
            logger.warning(f"Cannot update {reminder_id}: {e}")
            return False

        if updated.id != reminder_id and updated.id in self._registry:
            logger.warning(f"Cannot update {reminder_id}: id {updated.id} already registered")
            return False

        self.unregister(reminder_id)
        return self.register(updated)

    def find(self, reminder_id: str) -> Optional[ScheduledReminder]:
        return self._registry.find(reminder_id)

    def get_all(self) -> Dict[str, List[ScheduledReminder]]:
        """Snapshot of time -> reminders."""
        return self._registry.snapshot()

    def armed_times(self) -> List[str]:
        return self._timers.armed_times()

    def configure(self, **updates: Any) -> GroupingConfig:
        """
        Apply a partial grouping config update and return the new config.

        Raises:
            ValidationError: If a key is unknown or a value is invalid; the
                current config is kept
        """
        self._config = GroupingConfig(**{**self._config.model_dump(), **updates})
        logger.info(f"Grouping config updated: {self._config.model_dump()}")
        return self.get_config()

    def get_config(self) -> GroupingConfig:
        return self._config.model_copy()

    def get_stats(self) -> SchedulerStats:
        stats = SchedulerStats()
        for slot in self._registry.snapshot().values():
            stats.total_reminders += len(slot)
            stats.unique_time_slots += 1
            stats.max_reminders_in_slot = max(stats.max_reminders_in_slot, len(slot))
            for reminder in slot:
                stats.by_type[reminder.type] += 1
        return stats

    def clear(self) -> None:
        """Cancel every timer, drop every reminder and dismiss delivered alerts."""
        self._timers.cancel_all()
        self._registry.clear()
        self._dispatcher.cancel_all()
        logger.info("Reminder scheduler cleared")

    async def _on_slot_due(self, time_key: str, token: int) -> DispatchReport:
        """Timer callback: take the slot out and deliver it."""
        if not self._timers.claim(time_key, token):
            logger.info(f"Ignoring stale timer for {time_key}")
            return DispatchReport(time=time_key)

        reminders = self._registry.pop_slot(time_key)
        config = self.get_config()

        if not reminders:
            return DispatchReport(time=time_key)

        logger.info(f"Firing {len(reminders)} reminder(s) at {time_key}")
        return await self._dispatcher.dispatch(time_key, reminders, config)

    def start(self) -> None:
        if not self._job_scheduler.running:
            self._job_scheduler.start()

    def shutdown(self) -> None:
        if self._job_scheduler.running:
            self._job_scheduler.shutdown(wait=False)


def setup_scheduler(
    sink: NotificationSink, job_scheduler: Optional[BaseScheduler] = None
) -> ReminderScheduler:
    """Setup and start the reminder scheduler.

    Args:
        sink: Where due reminders are delivered
        job_scheduler: Optional job scheduler to use instead of a new AsyncIOScheduler

    Returns:
        The started ReminderScheduler
    """
    reminder_scheduler = ReminderScheduler(
        sink,
        job_scheduler or create_job_scheduler(),
        clock=functools.partial(local_now, settings.timezone),
        config=grouping_config_from_settings(),
    )
    reminder_scheduler.start()
    logger.info("Scheduler started")
    return reminder_scheduler


def shutdown_scheduler(reminder_scheduler: ReminderScheduler) -> None:
    """Shutdown the scheduler."""
    reminder_scheduler.clear()
    reminder_scheduler.shutdown()
    logger.info("Scheduler stopped")
