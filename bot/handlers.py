"""
Bot handlers for the Habit Reminder Bot.
Handles the owner chat binding, notification opt-in, reminder activation
and the scheduled reminders overview.

The reminder scheduler and notification sink are injected through the
dispatcher workflow data (see bot.py).
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from bot.keyboards import get_main_menu_keyboard, get_notification_permission_keyboard
from config import settings
from models.notification import PermissionStatus
from models.reminder import ReminderType, ScheduledReminder, SchedulerStats
from utils.constants import (
    CALLBACK_NOTIFY_ALLOW,
    CALLBACK_NOTIFY_DENY,
    CALLBACK_REMINDER_OPEN_PREFIX,
    GROUPED_LIST_BULLET,
)

if TYPE_CHECKING:
    from notifications.telegram import TelegramNotificationSink
    from scheduler.reminders import ReminderScheduler

logger = logging.getLogger(__name__)

router = Router()

WELCOME_TEXT = "👋 Welcome to Habit Reminder Bot!\n\nChoose an option:"

PRIVATE_BOT_TEXT = "🔒 This bot is private."

PERMISSION_STATUS_TEXT = {
    PermissionStatus.GRANTED: "✅ Reminders are enabled.",
    PermissionStatus.DENIED: "🔕 Reminders are turned off.",
    PermissionStatus.DEFAULT: "🔔 Reminders have not been enabled yet.",
}


def is_owner(chat_id: int, notification_sink: "TelegramNotificationSink") -> bool:
    """
    Check whether a chat may use the bot.

    A configured owner_chat_id wins. Otherwise the first chat to /start is
    bound to the sink and stays the owner.
    """
    if settings.owner_chat_id is not None:
        return settings.owner_chat_id == chat_id
    return notification_sink.chat_id is None or notification_sink.chat_id == chat_id


async def reject_callback(callback: CallbackQuery) -> None:
    logger.warning(f"Callback {callback.data} rejected for user {callback.from_user.id}")
    await callback.answer(PRIVATE_BOT_TEXT, show_alert=True)


def format_scheduler_overview(
    stats: SchedulerStats, slots: Dict[str, List[ScheduledReminder]]
) -> str:
    """Human readable summary of what is scheduled."""
    if stats.total_reminders == 0:
        return "⏰ No reminders are scheduled."

    lines = [
        f"⏰ {stats.total_reminders} reminder(s) in {stats.unique_time_slots} time slot(s)",
        "",
    ]
    for time_key in sorted(slots):
        titles = ", ".join(reminder.title for reminder in slots[time_key])
        lines.append(f"{time_key}: {titles}")

    counts = [
        f"{reminder_type.glyph} {reminder_type.label}: {stats.by_type[reminder_type]}"
        for reminder_type in ReminderType
        if stats.by_type[reminder_type]
    ]
    if counts:
        lines.append("")
        lines.extend(counts)
    return "\n".join(lines)


def describe_opened_reminder(data: Dict[str, Any]) -> str:
    """Text sent when a delivered reminder is opened."""
    if data.get("grouped"):
        names = [
            f"{GROUPED_LIST_BULLET} {item.get('habit_name') or item.get('title') or 'Reminder'}"
            for item in data.get("reminders", [])
        ]
        return "📋 Due now:\n" + "\n".join(names)

    name = data.get("habit_name") or "your habit"
    icon = data.get("habit_icon") or "🎯"
    return f"{icon} Time for {name}!"


# ========== Start Command & Main Menu ==========


@router.message(Command("start"))
async def cmd_start(message: Message, notification_sink: "TelegramNotificationSink"):
    """Handle /start command."""
    if not is_owner(message.chat.id, notification_sink):
        await message.answer(PRIVATE_BOT_TEXT)
        return

    notification_sink.bind_chat(message.chat.id)
    await message.answer(WELCOME_TEXT, reply_markup=get_main_menu_keyboard(settings.app_url))

    if notification_sink.get_permission_status() == PermissionStatus.DEFAULT:
        await message.answer(
            "🔔 Get a message when it is time for a habit?",
            reply_markup=get_notification_permission_keyboard(),
        )


# ========== Notification Permission ==========


@router.message(Command("notifications"))
async def cmd_notifications(message: Message, notification_sink: "TelegramNotificationSink"):
    """Ask for reminder permission (only prompts when not asked yet)."""
    if not is_owner(message.chat.id, notification_sink):
        return

    notification_sink.bind_chat(message.chat.id)
    status = await notification_sink.request_permission()
    await message.answer(PERMISSION_STATUS_TEXT[status])


@router.callback_query(lambda c: c.data == "notifications")
async def show_notification_settings(
    callback: CallbackQuery, notification_sink: "TelegramNotificationSink"
):
    """Show the current permission and offer to change it."""
    if not is_owner(callback.message.chat.id, notification_sink):
        await reject_callback(callback)
        return

    status = notification_sink.get_permission_status()
    await callback.message.edit_text(
        PERMISSION_STATUS_TEXT[status],
        reply_markup=get_notification_permission_keyboard(),
    )
    await callback.answer()


@router.callback_query(lambda c: c.data == CALLBACK_NOTIFY_ALLOW)
async def handle_notify_allow(callback: CallbackQuery, notification_sink: "TelegramNotificationSink"):
    """Handle reminder opt-in."""
    if not is_owner(callback.message.chat.id, notification_sink):
        await reject_callback(callback)
        return

    status = notification_sink.resolve_permission(True)
    logger.info(f"Reminder permission {status.value} by user {callback.from_user.id}")
    await callback.message.edit_text(
        "✅ Reminders enabled. You will get a message at your habit times.",
        reply_markup=get_main_menu_keyboard(settings.app_url),
    )
    await callback.answer()


@router.callback_query(lambda c: c.data == CALLBACK_NOTIFY_DENY)
async def handle_notify_deny(callback: CallbackQuery, notification_sink: "TelegramNotificationSink"):
    """Handle reminder opt-out."""
    if not is_owner(callback.message.chat.id, notification_sink):
        await reject_callback(callback)
        return

    status = notification_sink.resolve_permission(False)
    logger.info(f"Reminder permission {status.value} by user {callback.from_user.id}")
    await callback.message.edit_text(
        "🔕 Reminders are off. Use /notifications if you change your mind.",
        reply_markup=get_main_menu_keyboard(settings.app_url),
    )
    await callback.answer()


# ========== Delivered Reminders ==========


@router.callback_query(
    lambda c: c.data is not None and c.data.startswith(CALLBACK_REMINDER_OPEN_PREFIX)
)
async def handle_reminder_open(callback: CallbackQuery, notification_sink: "TelegramNotificationSink"):
    """Open a delivered reminder: dismiss it and bring the tracker forward."""
    if not is_owner(callback.message.chat.id, notification_sink):
        await reject_callback(callback)
        return

    key = callback.data[len(CALLBACK_REMINDER_OPEN_PREFIX):]
    data = await notification_sink.activate(key)
    if data is None:
        await callback.answer("This reminder is no longer active")
        return

    await callback.message.answer(
        describe_opened_reminder(data),
        reply_markup=get_main_menu_keyboard(settings.app_url),
    )
    await callback.answer()


# ========== Scheduled Reminders ==========


@router.message(Command("reminders"))
async def cmd_reminders(
    message: Message,
    reminder_scheduler: "ReminderScheduler",
    notification_sink: "TelegramNotificationSink",
):
    """Show scheduled reminders."""
    if not is_owner(message.chat.id, notification_sink):
        return

    await message.answer(
        format_scheduler_overview(reminder_scheduler.get_stats(), reminder_scheduler.get_all())
    )


@router.callback_query(lambda c: c.data == "reminders_stats")
async def show_reminders(
    callback: CallbackQuery,
    reminder_scheduler: "ReminderScheduler",
    notification_sink: "TelegramNotificationSink",
):
    """Show scheduled reminders from the main menu."""
    if not is_owner(callback.message.chat.id, notification_sink):
        await reject_callback(callback)
        return

    await callback.message.edit_text(
        format_scheduler_overview(reminder_scheduler.get_stats(), reminder_scheduler.get_all()),
        reply_markup=get_main_menu_keyboard(settings.app_url),
    )
    await callback.answer()


def register_handlers(dp) -> None:
    """Register all handlers with dispatcher."""
    dp.include_router(router)
