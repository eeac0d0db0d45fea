"""Time-of-day reminder scheduler."""

from .dispatcher import DeliveryDispatcher, DispatchReport
from .registry import ReminderRegistry
from .reminders import (
    ReminderScheduler,
    create_job_scheduler,
    setup_scheduler,
    shutdown_scheduler,
)
from .timers import TimerArmer

__all__ = [
    "DeliveryDispatcher",
    "DispatchReport",
    "ReminderRegistry",
    "ReminderScheduler",
    "TimerArmer",
    "create_job_scheduler",
    "setup_scheduler",
    "shutdown_scheduler",
]
