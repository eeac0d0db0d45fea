"""
Unit tests for the Telegram notification sink.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

from models.notification import NotificationConfig, PermissionStatus
from notifications.base import noop_cancel
from notifications.telegram import TelegramNotificationSink
from utils.exceptions import NotificationDeliveryError

CHAT_ID = 123456789


@pytest.fixture
def mock_bot():
    """Mock Telegram bot."""
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=MagicMock(message_id=42))
    bot.delete_message = AsyncMock()
    return bot


@pytest.fixture
def granted_sink(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID, auto_dismiss_seconds=60)
    sink.set_permission_status(PermissionStatus.GRANTED)
    return sink


def sent_key(mock_bot) -> str:
    markup = mock_bot.send_message.call_args.kwargs["reply_markup"]
    return markup.inline_keyboard[0][0].callback_data.split(":", 1)[1]


async def until_prompted(mock_bot) -> None:
    for _ in range(10):
        if mock_bot.send_message.await_count:
            return
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_unsupported_without_chat(mock_bot):
    sink = TelegramNotificationSink(mock_bot)

    assert sink.is_supported() is False
    assert sink.get_permission_status() == PermissionStatus.DENIED
    assert await sink.request_permission() == PermissionStatus.DENIED
    assert await sink.show(NotificationConfig(title="Hi")) is noop_cancel
    mock_bot.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_show_without_permission_is_inert(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID)

    handle = await sink.show(NotificationConfig(title="Hi"))

    assert handle is noop_cancel
    handle()
    mock_bot.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_request_permission_when_granted_does_not_prompt(granted_sink, mock_bot):
    assert await granted_sink.request_permission() == PermissionStatus.GRANTED
    mock_bot.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_request_permission_resolved_by_owner(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID)

    first = asyncio.create_task(sink.request_permission())
    second = asyncio.create_task(sink.request_permission())
    await until_prompted(mock_bot)
    sink.resolve_permission(True)

    assert await first == PermissionStatus.GRANTED
    assert await second == PermissionStatus.GRANTED
    mock_bot.send_message.assert_called_once()
    assert sink.get_permission_status() == PermissionStatus.GRANTED


@pytest.mark.asyncio
async def test_request_permission_denied(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID)

    task = asyncio.create_task(sink.request_permission())
    await until_prompted(mock_bot)
    sink.resolve_permission(False)

    assert await task == PermissionStatus.DENIED
    assert await sink.request_permission() == PermissionStatus.DENIED
    mock_bot.send_message.assert_called_once()


@pytest.mark.asyncio
async def test_request_permission_unanswered(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID, permission_timeout=0.01)

    assert await sink.request_permission() == PermissionStatus.DEFAULT


@pytest.mark.asyncio
async def test_request_permission_prompt_fails(mock_bot):
    mock_bot.send_message.side_effect = TelegramBadRequest(
        method=MagicMock(), message="Bad Request: chat not found"
    )
    sink = TelegramNotificationSink(mock_bot, CHAT_ID)

    assert await sink.request_permission() == PermissionStatus.DENIED


@pytest.mark.asyncio
async def test_show_sends_html_message(granted_sink, mock_bot):
    handle = await granted_sink.show(
        NotificationConfig(title="Read <book>", body="Time to complete habit: Read", icon="📚")
    )

    call = mock_bot.send_message.call_args
    assert call.args[0] == CHAT_ID
    assert call.args[1] == "📚 <b>Read &lt;book&gt;</b>\nTime to complete habit: Read"
    assert call.kwargs["disable_notification"] is False
    assert sent_key(mock_bot)
    assert handle is not noop_cancel
    assert granted_sink.visible_count() == 1


@pytest.mark.asyncio
async def test_cancel_handle_deletes_message(granted_sink, mock_bot):
    handle = await granted_sink.show(NotificationConfig(title="Read"))

    handle()
    await asyncio.sleep(0)

    mock_bot.delete_message.assert_awaited_once_with(CHAT_ID, 42)
    assert granted_sink.visible_count() == 0

    handle()
    await asyncio.sleep(0)
    mock_bot.delete_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_cancel_after_rebind_deletes_in_original_chat(granted_sink, mock_bot):
    handle = await granted_sink.show(NotificationConfig(title="Read"))
    granted_sink.bind_chat(987654321)

    handle()
    await asyncio.sleep(0)

    mock_bot.delete_message.assert_awaited_once_with(CHAT_ID, 42)


@pytest.mark.asyncio
async def test_same_tag_replaces_previous_alert(granted_sink, mock_bot):
    mock_bot.send_message.side_effect = [MagicMock(message_id=1), MagicMock(message_id=2)]

    await granted_sink.show(NotificationConfig(title="First", tag="grouped-notification"))
    await granted_sink.show(NotificationConfig(title="Second", tag="grouped-notification"))
    await asyncio.sleep(0)

    mock_bot.delete_message.assert_awaited_once_with(CHAT_ID, 1)
    assert granted_sink.visible_count() == 1


@pytest.mark.asyncio
async def test_auto_dismiss(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID, auto_dismiss_seconds=0.01)
    sink.set_permission_status(PermissionStatus.GRANTED)

    await sink.show(NotificationConfig(title="Read"))
    await asyncio.sleep(0.05)

    mock_bot.delete_message.assert_awaited_once_with(CHAT_ID, 42)
    assert sink.visible_count() == 0


@pytest.mark.asyncio
async def test_activate_returns_data_once(granted_sink, mock_bot):
    await granted_sink.show(NotificationConfig(title="Read", data={"habit_id": "h1"}))
    key = sent_key(mock_bot)

    assert await granted_sink.activate(key) == {"habit_id": "h1"}
    mock_bot.delete_message.assert_awaited_once_with(CHAT_ID, 42)
    assert await granted_sink.activate(key) is None


@pytest.mark.asyncio
async def test_blocked_bot_denies_permission(granted_sink, mock_bot):
    mock_bot.send_message.side_effect = TelegramForbiddenError(
        method=MagicMock(), message="Forbidden: bot was blocked by the user"
    )

    with pytest.raises(NotificationDeliveryError):
        await granted_sink.show(NotificationConfig(title="Read"))

    assert granted_sink.get_permission_status() == PermissionStatus.DENIED
    assert await granted_sink.show(NotificationConfig(title="Read")) is noop_cancel


@pytest.mark.asyncio
async def test_other_api_errors_raise_delivery_error(granted_sink, mock_bot):
    mock_bot.send_message.side_effect = TelegramBadRequest(
        method=MagicMock(), message="Bad Request: message is too long"
    )

    with pytest.raises(NotificationDeliveryError):
        await granted_sink.show(NotificationConfig(title="Read"))

    assert granted_sink.get_permission_status() == PermissionStatus.GRANTED


def test_bind_chat_resets_permission_for_new_chat(mock_bot):
    sink = TelegramNotificationSink(mock_bot, CHAT_ID)
    sink.set_permission_status(PermissionStatus.GRANTED)

    sink.bind_chat(CHAT_ID)
    assert sink.get_permission_status() == PermissionStatus.GRANTED

    sink.bind_chat(987654321)
    assert sink.chat_id == 987654321
    assert sink.get_permission_status() == PermissionStatus.DEFAULT
