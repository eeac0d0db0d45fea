"""
Inline keyboards for bot interactions.
"""

from typing import Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from utils.constants import (
    CALLBACK_NOTIFY_ALLOW,
    CALLBACK_NOTIFY_DENY,
    CALLBACK_REMINDER_OPEN_PREFIX,
)


def get_main_menu_keyboard(app_url: Optional[str] = None) -> InlineKeyboardMarkup:
    """Get main menu keyboard."""
    builder = InlineKeyboardBuilder()

    if app_url:
        builder.row(InlineKeyboardButton(text="📱 Open Habit Tracker", url=app_url))
    builder.row(
        InlineKeyboardButton(text="⏰ Scheduled Reminders", callback_data="reminders_stats")
    )
    builder.row(
        InlineKeyboardButton(text="🔔 Notification Settings", callback_data="notifications")
    )

    return builder.as_markup()


def get_notification_permission_keyboard() -> InlineKeyboardMarkup:
    """Get reminder opt-in keyboard."""
    builder = InlineKeyboardBuilder()

    builder.row(
        InlineKeyboardButton(text="✅ Allow reminders", callback_data=CALLBACK_NOTIFY_ALLOW)
    )
    builder.row(
        InlineKeyboardButton(text="❌ Not now", callback_data=CALLBACK_NOTIFY_DENY)
    )

    return builder.as_markup()


def get_reminder_keyboard(key: str) -> InlineKeyboardMarkup:
    """Get keyboard attached to a delivered reminder."""
    builder = InlineKeyboardBuilder()

    builder.row(
        InlineKeyboardButton(
            text="📱 Open", callback_data=f"{CALLBACK_REMINDER_OPEN_PREFIX}{key}"
        )
    )

    return builder.as_markup()
