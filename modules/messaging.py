import io
import logging
from typing import List, Optional, Union

from aiogram import types
from aiogram.exceptions import TelegramAPIError
from PIL import Image

from tarot.models import Card


logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4000


def load_card_image(path: str, upright: bool) -> io.BytesIO:
    """Створює BytesIO з перевернутою/прямою карткою."""
    buf = io.BytesIO()
    with Image.open(path) as img:
        if not upright:
            img = img.rotate(180, expand=True)
        img.convert("RGB").save(buf, format="JPEG")
    buf.seek(0)
    return buf


def card_photo(card: Card, is_reversed: bool = False) -> Optional[Union[str, types.BufferedInputFile]]:
    """
    URL віддаємо як є (Telegram сам завантажить),
    локальний файл через Pillow, з поворотом для перевернутої карти.
    """
    if not card.image:
        return None
    if card.image.startswith(("http://", "https://")):
        return card.image

    try:
        buf = load_card_image(card.image, upright=not is_reversed)
    except OSError as e:
        logger.error("Card image %s unavailable: %s", card.image, e)
        return None
    return types.BufferedInputFile(buf.getvalue(), filename="card.jpg")


def entity_safe_cut(text: str, limit: int) -> int:
    """Позиція розрізу <= limit, яка не рве HTML-сутність на кшталт &amp;."""
    amp = text.rfind("&", 0, limit)
    if amp > 0 and text.find(";", amp, limit) == -1:
        return amp
    return limit


def split_text(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """Ріже довгий текст по рядках, щоб влізти в ліміт Telegram (4096)."""
    chunks: List[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            cut = entity_safe_cut(line, limit)
            chunks.append(line[:cut])
            line = line[cut:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current or not chunks:
        chunks.append(current)
    return chunks


async def replace_message(
    message: types.Message,
    text: str,
    reply_markup=None,
    photo=None,
) -> Optional[types.Message]:
    """
    Замість edit: видаляємо старе повідомлення і шлемо нове.
    Так працює і перехід фото <-> текст.
    """
    try:
        await message.delete()
    except TelegramAPIError:
        pass

    if photo is not None:
        try:
            return await message.answer_photo(
                photo=photo,
                caption=text,
                reply_markup=reply_markup,
            )
        except TelegramAPIError as e:
            # підпис довший за 1024 або фото не віддається: шлемо текстом
            logger.warning("Photo send failed, falling back to text: %s", e)

    try:
        return await message.answer(text, reply_markup=reply_markup)
    except TelegramAPIError as e:
        logger.error("Message send failed in chat %s: %s", message.chat.id, e)
        return None
