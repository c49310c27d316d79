import logging

from aiogram import Router, types, F
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button
from modules.messaging import replace_message
from tarot.catalog import Catalog
from tarot.models import Spread
from tarot.sessions import SessionRegistry
import config


logger = logging.getLogger(__name__)

spreads_router = Router()

EMOJI = config.EMOJI


# ======================
#   ФОРМАТУВАННЯ
# ======================
def format_spread_description(spread: Spread) -> str:
    positions = "\n".join(spread.positions)
    return (
        f"{spread.emoji} <b>{spread.name}</b>\n\n"
        f"📋 <b>Описание:</b>\n{spread.description}\n\n"
        f"🎴 <b>Количество карт:</b> {spread.cards_count}\n\n"
        f"<b>Позиции карт:</b>\n{positions}\n\n"
        f"💡 <b>Инструкция:</b>\n{spread.instruction}"
    )


def format_spread_prompt(spread: Spread) -> str:
    return (
        f"{spread.emoji} <b>Расклад \"{spread.name}\"</b>\n\n"
        f"Введите названия {spread.cards_count} карт(ы) через запятую.\n\n"
        "<b>Пример:</b>\n"
        "Шут, Маг, Императрица перевернутая\n\n"
        "<i>Если карта выпала в перевернутом положении, "
        "добавьте слово \"перевернутая\" после названия.</i>\n\n"
        "Введите карты:"
    )


# ======================
#   КЛАВІАТУРИ
# ======================
def build_spreads_menu(catalog: Catalog) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=f"{spread.emoji} {spread.name} ({spread.cards_count} карт)",
                callback_data=f"spread_{spread.id}",
            )
        ]
        for spread in catalog.spreads
    ]
    rows.append([back_to_menu_button()])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_spread_kb(spread_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=f"{EMOJI['cards']} Начать расклад", callback_data=f"start_spread_{spread_id}")],
            [InlineKeyboardButton(text=f"{EMOJI['back']} К выбору расклада", callback_data="spreads_menu")],
            [back_to_menu_button()],
        ]
    )


def build_cancel_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=f"{EMOJI['back']} Отмена", callback_data="cancel_spread")]]
    )


SPREADS_MENU_TEXT = f"{EMOJI['spread']} <b>Выберите расклад</b>\n\nКаждый расклад отвечает на свой тип вопроса:"


# ======================
#   ХЕНДЛЕРИ
# ======================
@spreads_router.callback_query(F.data == "spreads_menu")
async def open_spreads_menu(callback: types.CallbackQuery, catalog: Catalog):
    await replace_message(callback.message, SPREADS_MENU_TEXT, reply_markup=build_spreads_menu(catalog))
    await callback.answer()


@spreads_router.callback_query(F.data == "cancel_spread")
async def cancel_spread(callback: types.CallbackQuery, catalog: Catalog, sessions: SessionRegistry):
    sessions.close(callback.from_user.id)
    await replace_message(callback.message, SPREADS_MENU_TEXT, reply_markup=build_spreads_menu(catalog))
    await callback.answer("Расклад отменен")


@spreads_router.callback_query(F.data.startswith("spread_"))
async def show_spread(callback: types.CallbackQuery, catalog: Catalog):
    spread = catalog.get_spread(callback.data.removeprefix("spread_"))
    if spread is None:
        await callback.answer("❌ Расклад не найден", show_alert=True)
        return

    await replace_message(
        callback.message,
        format_spread_description(spread),
        reply_markup=build_spread_kb(spread.id),
    )
    await callback.answer()


@spreads_router.callback_query(F.data.startswith("start_spread_"))
async def start_spread(callback: types.CallbackQuery, catalog: Catalog, sessions: SessionRegistry):
    spread = catalog.get_spread(callback.data.removeprefix("start_spread_"))
    if spread is None:
        await callback.answer("❌ Расклад не найден", show_alert=True)
        return

    sessions.open(callback.from_user.id, spread)
    await replace_message(callback.message, format_spread_prompt(spread), reply_markup=build_cancel_kb())
    await callback.answer()
