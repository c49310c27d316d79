import logging
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from aiogram.types import CallbackQuery, Chat, Message, User

from modules.activity_logger import ActivityLoggerMiddleware, describe_event

USER = User(id=5, is_bot=False, first_name="Ann", username="ann")


def _message(text):
    return Message(
        message_id=1,
        date=datetime(2024, 1, 1),
        chat=Chat(id=5, type="private"),
        from_user=USER,
        text=text,
    )


def _callback(data):
    return CallbackQuery(id="1", from_user=USER, chat_instance="ci", data=data)


def test_describe_event():
    assert describe_event(_message("/start")) == "text: /start"
    assert describe_event(_callback("main_menu")) == "callback: main_menu"
    assert describe_event(object()) is None


async def test_logs_and_passes_through(caplog):
    handler = AsyncMock(return_value="done")
    event = _callback("show_history")

    with caplog.at_level(logging.INFO, logger="tarot.activity"):
        result = await ActivityLoggerMiddleware()(handler, event, {"k": 1})

    assert result == "done"
    handler.assert_awaited_once_with(event, {"k": 1})
    assert "callback: show_history" in caplog.text


async def test_handler_errors_are_logged_and_reraised(caplog):
    handler = AsyncMock(side_effect=RuntimeError("boom"))

    with caplog.at_level(logging.INFO, logger="tarot.activity"):
        with pytest.raises(RuntimeError):
            await ActivityLoggerMiddleware()(handler, _message("Шут"), {})

    assert "Handler failed on text: Шут" in caplog.text
