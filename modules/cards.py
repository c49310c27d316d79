import logging
from math import ceil
from typing import Sequence

from aiogram import Router, types, F
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button
from modules.messaging import card_photo, replace_message
from tarot.catalog import Catalog
from tarot.models import Card
import config


logger = logging.getLogger(__name__)

cards_router = Router()

EMOJI = config.EMOJI
CARDS_PER_PAGE = 10

SUIT_TITLES = {
    "wands": "🔥 Жезлы",
    "cups": "💧 Кубки",
    "swords": "⚔️ Мечи",
    "pentacles": "🪙 Пентакли",
}


# ======================
#   ФОРМАТУВАННЯ
# ======================
def format_card_info(card: Card) -> str:
    return (
        f"{card.emoji} <b>{card.name}</b>\n"
        f"<i>{card.name_en}</i>\n\n"
        f"📖 <b>Описание:</b>\n{card.description}\n\n"
        f"⬆️ <b>Прямое положение:</b>\n{card.upright}\n\n"
        f"⬇️ <b>Перевернутое положение:</b>\n{card.reversed}\n\n"
        f"🔑 <b>Ключевые слова:</b>\n{', '.join(card.keywords)}"
    )


def arcana_title(arcana_type: str) -> str:
    if arcana_type == "major":
        return f"{EMOJI['major']} <b>Старшие Арканы</b>\n\nВыберите карту для просмотра:"
    return f"{SUIT_TITLES[arcana_type]} <b>Младшие Арканы</b>\n\nВыберите карту для просмотра:"


# ======================
#   КЛАВІАТУРИ
# ======================
def build_arcana_menu(catalog: Catalog) -> InlineKeyboardMarkup:
    def suit_button(suit: str) -> InlineKeyboardButton:
        return InlineKeyboardButton(
            text=f"{SUIT_TITLES[suit]} ({len(catalog.cards_of(suit))} карт)",
            callback_data=f"arcana_{suit}",
        )

    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=f"{EMOJI['major']} Старшие Арканы ({len(catalog.major)} карты)",
                    callback_data="arcana_major",
                )
            ],
            [suit_button("wands"), suit_button("cups")],
            [suit_button("swords"), suit_button("pentacles")],
            [back_to_menu_button()],
        ]
    )


def build_cards_list(cards: Sequence[Card], arcana_type: str, page: int = 0) -> InlineKeyboardMarkup:
    total_pages = max(1, ceil(len(cards) / CARDS_PER_PAGE))
    page = max(0, min(page, total_pages - 1))
    start = page * CARDS_PER_PAGE
    end = min(start + CARDS_PER_PAGE, len(cards))

    rows: list[list[InlineKeyboardButton]] = []
    for i in range(start, end):
        card = cards[i]
        rows.append([
            InlineKeyboardButton(
                text=f"{card.emoji} {card.name}",
                callback_data=f"show_card_{arcana_type}_{i}",
            )
        ])

    # пагінація
    if total_pages > 1:
        nav: list[InlineKeyboardButton] = []
        if page > 0:
            nav.append(InlineKeyboardButton(text="⬅️ Назад", callback_data=f"cards_page_{arcana_type}_{page - 1}"))
        nav.append(InlineKeyboardButton(text=f"📄 {page + 1}/{total_pages}", callback_data="ignore"))
        if page < total_pages - 1:
            nav.append(InlineKeyboardButton(text="Вперед ➡️", callback_data=f"cards_page_{arcana_type}_{page + 1}"))
        rows.append(nav)

    rows.append([InlineKeyboardButton(text=f"{EMOJI['back']} К выбору аркана", callback_data="cards_menu")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_card_view_kb(arcana_type: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=f"{EMOJI['back']} К списку карт", callback_data=f"arcana_{arcana_type}")],
            [back_to_menu_button()],
        ]
    )


def parse_page_data(data: str, prefix: str):
    """'cards_page_wands_1' -> ('wands', 1); битий формат -> None."""
    arcana_type, _, tail = data[len(prefix):].rpartition("_")
    if not arcana_type or not tail.isdigit():
        return None
    return arcana_type, int(tail)


def is_known_arcana(arcana_type: str) -> bool:
    return arcana_type == "major" or arcana_type in SUIT_TITLES


# ======================
#   ХЕНДЛЕРИ
# ======================
@cards_router.callback_query(F.data == "cards_menu")
async def open_cards_menu(callback: types.CallbackQuery, catalog: Catalog):
    await replace_message(
        callback.message,
        f"{EMOJI['cards']} <b>Справочник карт Таро</b>\n\nВыберите раздел колоды:",
        reply_markup=build_arcana_menu(catalog),
    )
    await callback.answer()


@cards_router.callback_query(F.data.startswith("arcana_"))
async def open_arcana(callback: types.CallbackQuery, catalog: Catalog):
    arcana_type = callback.data.removeprefix("arcana_")
    if not is_known_arcana(arcana_type):
        await callback.answer()
        return

    await replace_message(
        callback.message,
        arcana_title(arcana_type),
        reply_markup=build_cards_list(catalog.cards_of(arcana_type), arcana_type),
    )
    await callback.answer()


@cards_router.callback_query(F.data.startswith("cards_page_"))
async def cards_page(callback: types.CallbackQuery, catalog: Catalog):
    parsed = parse_page_data(callback.data, "cards_page_")
    if parsed is None or not is_known_arcana(parsed[0]):
        await callback.answer()
        return

    arcana_type, page = parsed
    await replace_message(
        callback.message,
        arcana_title(arcana_type),
        reply_markup=build_cards_list(catalog.cards_of(arcana_type), arcana_type, page),
    )
    await callback.answer()


@cards_router.callback_query(F.data.startswith("show_card_"))
async def show_card(callback: types.CallbackQuery, catalog: Catalog):
    parsed = parse_page_data(callback.data, "show_card_")
    if parsed is None or not is_known_arcana(parsed[0]):
        await callback.answer()
        return

    arcana_type, index = parsed
    cards = catalog.cards_of(arcana_type)
    if index >= len(cards):
        await callback.answer()
        return

    card = cards[index]
    await replace_message(
        callback.message,
        format_card_info(card),
        reply_markup=build_card_view_kb(arcana_type),
        photo=card_photo(card),
    )
    await callback.answer()
    logger.info("📖 User %s viewed card %s", callback.from_user.id, card.name)
