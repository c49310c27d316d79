import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message


logger = logging.getLogger("tarot.activity")


def describe_event(event: Any) -> str | None:
    """Короткий опис дії користувача для логу; None, якщо логувати нічого."""
    if isinstance(event, Message) and event.text:
        return f"text: {event.text[:100]}"
    if isinstance(event, CallbackQuery):
        return f"callback: {event.data}"
    return None


class ActivityLoggerMiddleware(BaseMiddleware):
    """
    Логує:
    ✔ команди і текст, який юзер вводить вручну
    ✔ натискання inline-кнопок (callback)
    ✔ падіння хендлерів (і прокидує помилку далі)
    """

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any]
    ) -> Any:
        action = describe_event(event)
        user = getattr(event, "from_user", None)

        if action and user is not None:
            logger.info("👤 %s (@%s): %s", user.id, user.username, action)

        try:
            return await handler(event, data)
        except Exception:
            logger.exception("Handler failed on %s", action or type(event).__name__)
            raise
