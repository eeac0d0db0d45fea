"""Notification delivery sinks."""

from .base import CancelHandle, NotificationSink, noop_cancel
from .telegram import TelegramNotificationSink

__all__ = [
    "CancelHandle",
    "NotificationSink",
    "TelegramNotificationSink",
    "noop_cancel",
]
