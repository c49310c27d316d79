import logging

from aiogram import Router, F, types
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button
from modules.messaging import card_photo, replace_message
from tarot.catalog import Catalog
from tarot.models import ResolvedCard
from tarot.quick import QUICK_ANSWER_REVERSED_CHANCE, QuickAnswer, draw_card, quick_answer
import config


logger = logging.getLogger(__name__)

yes_no = Router()

EMOJI = config.EMOJI


QUICK_ANSWER_TEXT = (
    "❓ <b>Быстрый ответ</b>\n\n"
    "Сейчас я вытяну карту и дам ответ на ваш вопрос.\n\n"
    "💭 Сформулируйте вопрос в уме, чтобы ответ был Да или Нет.\n\n"
    "Например:\n"
    "• \"Стоит ли мне принять это предложение?\"\n"
    "• \"Это правильное решение?\"\n"
    "• \"Будет ли успешным этот проект?\"\n\n"
    "Когда будете готовы, нажмите кнопку ниже:"
)


def format_quick_answer(drawn: ResolvedCard, answer: QuickAnswer) -> str:
    card = drawn.card
    orientation = "перевернутом" if drawn.is_reversed else "прямом"
    return (
        f"{answer.emoji} <b>Ответ: {answer.verdict}</b>\n\n"
        "Выпала карта:\n"
        f"{card.emoji} <b>{card.name}</b> (в {orientation} положении)\n\n"
        f"💬 <b>Пояснение:</b>\n{card.meaning(drawn.is_reversed)}\n\n"
        f"🔮 <b>Совет:</b>\n{card.description}"
    )


# ======================
#   КЛАВІАТУРИ
# ======================
def build_intro_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🎴 Вытянуть карту", callback_data="draw_quick_answer")],
            [back_to_menu_button()],
        ]
    )


def build_answer_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Задать другой вопрос", callback_data="quick_answer")],
            [InlineKeyboardButton(text=f"{EMOJI['spread']} Подробный расклад", callback_data="spreads_menu")],
            [back_to_menu_button()],
        ]
    )


# ======================
#   ХЕНДЛЕРИ
# ======================
@yes_no.callback_query(F.data == "quick_answer")
async def open_quick_answer(callback: types.CallbackQuery):
    await replace_message(callback.message, QUICK_ANSWER_TEXT, reply_markup=build_intro_kb())
    await callback.answer()


@yes_no.callback_query(F.data == "draw_quick_answer")
async def draw_quick_answer(callback: types.CallbackQuery, catalog: Catalog):
    drawn = draw_card(catalog, QUICK_ANSWER_REVERSED_CHANCE)
    answer = quick_answer(drawn)

    await replace_message(
        callback.message,
        format_quick_answer(drawn, answer),
        reply_markup=build_answer_kb(),
        photo=card_photo(drawn.card, drawn.is_reversed),
    )
    await callback.answer()
    logger.info("❓ User %s got quick answer: %s (%s)", callback.from_user.id, answer.verdict, drawn.name)
