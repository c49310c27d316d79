import logging

from aiogram import Router, types, F
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button
from modules.messaging import card_photo, replace_message
from tarot.catalog import Catalog
from tarot.models import ResolvedCard
from tarot.quick import CARD_OF_DAY_REVERSED_CHANCE, draw_card
import config


logger = logging.getLogger(__name__)

card_router = Router()

EMOJI = config.EMOJI


def format_card_of_day(drawn: ResolvedCard) -> str:
    card = drawn.card
    orientation = "⬇️ Перевернутая" if drawn.is_reversed else "⬆️ Прямая"
    return (
        "🎴 <b>Ваша карта дня</b>\n\n"
        f"{card.emoji} <b>{card.name}</b>\n"
        f"<i>{card.name_en}</i>\n\n"
        f"Положение: {orientation}\n\n"
        f"💫 <b>Значение:</b>\n{card.meaning(drawn.is_reversed)}\n\n"
        f"📝 <b>Совет:</b>\n{card.description}\n\n"
        "<i>Позвольте энергии этой карты направлять вас сегодня!</i>"
    )


def build_card_of_day_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Другая карта", callback_data="card_of_day")],
            [InlineKeyboardButton(text=f"{EMOJI['spread']} Сделать расклад", callback_data="spreads_menu")],
            [back_to_menu_button()],
        ]
    )


# ===============================
#   КНОПКА "КАРТА ДНЯ"
# ===============================
@card_router.callback_query(F.data == "card_of_day")
async def card_of_day(callback: types.CallbackQuery, catalog: Catalog):
    drawn = draw_card(catalog, CARD_OF_DAY_REVERSED_CHANCE)

    await replace_message(
        callback.message,
        format_card_of_day(drawn),
        reply_markup=build_card_of_day_kb(),
        photo=card_photo(drawn.card, drawn.is_reversed),
    )
    await callback.answer()

    orientation = "reversed" if drawn.is_reversed else "upright"
    logger.info("🎴 User %s drew card of the day: %s (%s)", callback.from_user.id, drawn.name, orientation)
