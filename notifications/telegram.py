"""
Telegram delivery sink.

Reminders are delivered as bot messages to the owner chat. Permission is the
owner's explicit opt-in through an inline keyboard, dismissing an alert
deletes its message and activating it means pressing its "Open" button.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set
from uuid import uuid4

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramForbiddenError
from aiogram.utils.text_decorations import html_decoration

from bot.keyboards import get_notification_permission_keyboard, get_reminder_keyboard
from models.notification import NotificationConfig, PermissionStatus
from notifications.base import CancelHandle, noop_cancel
from utils.constants import AUTO_DISMISS_SECONDS, PERMISSION_PROMPT_TIMEOUT_SECONDS
from utils.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)

PERMISSION_PROMPT_TEXT = (
    "🔔 Habit reminders\n\n"
    "Allow this bot to send you reminders at the times you set for your habits?"
)


@dataclass
class _VisibleAlert:
    """An alert message currently shown in the chat."""

    key: str
    chat_id: int
    message_id: int
    tag: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    timer: Optional[asyncio.TimerHandle] = None


class TelegramNotificationSink:
    """NotificationSink that sends alerts through an aiogram Bot."""

    def __init__(
        self,
        bot: Optional[Bot],
        chat_id: Optional[int] = None,
        auto_dismiss_seconds: float = AUTO_DISMISS_SECONDS,
        permission_timeout: float = PERMISSION_PROMPT_TIMEOUT_SECONDS,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._auto_dismiss_seconds = auto_dismiss_seconds
        self._permission_timeout = permission_timeout
        self._status = PermissionStatus.DEFAULT
        self._pending_permission: Optional[asyncio.Future] = None
        self._visible: Dict[str, _VisibleAlert] = {}
        self._tags: Dict[str, str] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def chat_id(self) -> Optional[int]:
        return self._chat_id

    def bind_chat(self, chat_id: int) -> None:
        """Deliver to chat_id from now on."""
        if self._chat_id is not None and self._chat_id != chat_id:
            logger.info(f"Notification chat rebound from {self._chat_id} to {chat_id}")
            self._status = PermissionStatus.DEFAULT
        self._chat_id = chat_id

    def is_supported(self) -> bool:
        return self._bot is not None and self._chat_id is not None

    def get_permission_status(self) -> PermissionStatus:
        if not self.is_supported():
            return PermissionStatus.DENIED
        return self._status

    def set_permission_status(self, status: PermissionStatus) -> None:
        """Restore a decision made outside the bot (e.g. from settings)."""
        self._status = status

    async def request_permission(self) -> PermissionStatus:
        """
        Ask the owner to allow reminders.

        Prompts only while the status is DEFAULT. Concurrent callers share
        the same prompt.

        Returns:
            The resulting permission status
        """
        if not self.is_supported():
            logger.warning("Telegram notifications are not available: no bot or chat bound")
            return PermissionStatus.DENIED

        if self._status in (PermissionStatus.GRANTED, PermissionStatus.DENIED):
            return self._status

        if self._pending_permission is not None and not self._pending_permission.done():
            return await self._wait_for_permission(self._pending_permission)

        pending = asyncio.get_running_loop().create_future()
        self._pending_permission = pending
        try:
            await self._bot.send_message(
                self._chat_id,
                PERMISSION_PROMPT_TEXT,
                reply_markup=get_notification_permission_keyboard(),
            )
        except TelegramAPIError as e:
            logger.error(f"Failed to request notification permission: {e}")
            self._pending_permission = None
            return PermissionStatus.DENIED

        status = await self._wait_for_permission(pending)
        logger.info(f"Notification permission: {status.value}")
        return status

    async def _wait_for_permission(self, pending: asyncio.Future) -> PermissionStatus:
        try:
            return await asyncio.wait_for(asyncio.shield(pending), self._permission_timeout)
        except asyncio.TimeoutError:
            logger.info("Notification permission prompt left unanswered")
            return self._status

    def resolve_permission(self, granted: bool) -> PermissionStatus:
        """Record the owner's answer to the permission prompt."""
        self._status = PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
        pending = self._pending_permission
        self._pending_permission = None
        if pending is not None and not pending.done():
            pending.set_result(self._status)
        return self._status

    async def show(self, config: NotificationConfig) -> CancelHandle:
        """
        Send one alert to the owner chat.

        Args:
            config: Alert content

        Returns:
            Handle that cancels auto-dismiss and deletes the message

        Raises:
            NotificationDeliveryError: If Telegram rejects the message
        """
        if not self.is_supported() or self._status != PermissionStatus.GRANTED:
            return noop_cancel

        if config.tag and config.tag in self._tags:
            self._dismiss(self._tags[config.tag])

        key = uuid4().hex[:16]
        try:
            message = await self._bot.send_message(
                self._chat_id,
                self._format(config),
                parse_mode=ParseMode.HTML,
                reply_markup=get_reminder_keyboard(key),
                disable_notification=config.silent,
            )
        except TelegramForbiddenError as e:
            self._status = PermissionStatus.DENIED
            raise NotificationDeliveryError(f"Bot was blocked by chat {self._chat_id}") from e
        except TelegramAPIError as e:
            raise NotificationDeliveryError(f"Failed to send notification: {e}") from e

        alert = _VisibleAlert(
            key=key,
            chat_id=self._chat_id,
            message_id=message.message_id,
            tag=config.tag,
            data=dict(config.data),
        )
        alert.timer = asyncio.get_running_loop().call_later(
            self._auto_dismiss_seconds, self._dismiss, key
        )
        self._visible[key] = alert
        if config.tag:
            self._tags[config.tag] = key

        logger.info(f"Notification shown: {config.title}")
        return functools.partial(self._dismiss, key)

    async def activate(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Handle a press on the alert's "Open" button.

        Dismisses the alert and returns its data so the caller can bring
        the app forward. None when the alert is already gone.
        """
        alert = self._forget(key)
        if alert is None:
            return None
        await self._delete_message(alert)
        return alert.data

    def visible_count(self) -> int:
        return len(self._visible)

    def _forget(self, key: str) -> Optional[_VisibleAlert]:
        alert = self._visible.pop(key, None)
        if alert is None:
            return None
        if alert.timer is not None:
            alert.timer.cancel()
        if alert.tag and self._tags.get(alert.tag) == key:
            del self._tags[alert.tag]
        return alert

    def _dismiss(self, key: str) -> None:
        alert = self._forget(key)
        if alert is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No event loop, notification message {alert.message_id} left in chat")
            return
        task = loop.create_task(self._delete_message(alert))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _delete_message(self, alert: _VisibleAlert) -> None:
        # The alert stays in the chat it was sent to even after bind_chat
        try:
            await self._bot.delete_message(alert.chat_id, alert.message_id)
        except TelegramAPIError as e:
            logger.debug(f"Could not delete notification message {alert.message_id}: {e}")

    @staticmethod
    def _format(config: NotificationConfig) -> str:
        title = html_decoration.bold(html_decoration.quote(config.title))
        if config.icon:
            title = f"{html_decoration.quote(config.icon)} {title}"
        if not config.body:
            return title
        return f"{title}\n{html_decoration.quote(config.body)}"
