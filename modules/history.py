import logging

from aiogram import Router, types, F, html
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button
from modules.messaging import replace_message
from tarot.errors import NotFoundError
from tarot.history_store import HistoryPage, HistoryStats, HistoryStore
from tarot.models import HistoryEntry
import config


logger = logging.getLogger(__name__)

history_router = Router()

EMOJI = config.EMOJI

VIEW_LIMIT = 4000
VIEW_CUT = 3950
TOP_SPREADS = 3
TOP_CARDS = 5


# ======================
#   ФОРМАТУВАННЯ
# ======================
def format_history_title(page: HistoryPage) -> str:
    if page.total == 0:
        return (
            "📜 <b>История гаданий</b>\n\n"
            "У вас пока нет сохраненных раскладов.\n\n"
            "Сделайте первый расклад!"
        )
    return (
        "📜 <b>История ваших гаданий</b>\n\n"
        f"Всего раскладов: {page.total}\n\n"
        "Выберите расклад для просмотра:"
    )


def format_entry_view(entry: HistoryEntry) -> str:
    lines = [
        f"🔮 <b>{html.quote(entry.spread_name)}</b>",
        f"📅 {entry.date}",
        "",
        "🎴 <b>Карты:</b>",
    ]
    for i, card in enumerate(entry.cards, start=1):
        arrow = "⬇️" if card.is_reversed else "⬆️"
        lines.append(f"{i}. {card.emoji} {html.quote(card.name)} {arrow}")
    lines += ["", "📖 <b>Толкование:</b>"]

    header = "\n".join(lines) + "\n"
    body = html.quote(entry.interpretation)
    # ліміт Telegram 4096; ріжемо сирий текст, щоб не порвати &amp; та інші сутності
    if len(header) + len(body) > VIEW_LIMIT:
        budget = max(0, VIEW_CUT - len(header))
        raw = entry.interpretation[:budget]
        while len(html.quote(raw)) > budget:
            raw = raw[:len(raw) - (len(html.quote(raw)) - budget)]
        body = html.quote(raw) + "...\n\n<i>(Толкование слишком длинное, показана часть)</i>"
    return header + body


def format_stats(stats: HistoryStats) -> str:
    if stats.total == 0:
        return "📊 <b>Статистика</b>\n\nУ вас пока нет раскладов в истории."

    lines = [
        "📊 <b>Ваша статистика</b>",
        "",
        f"🔢 Всего раскладов: {stats.total}",
        f"📅 Первый расклад: {stats.first_date}",
        f"📅 Последний расклад: {stats.last_date}",
        "",
    ]

    top_spreads = stats.top_spreads(TOP_SPREADS)
    if top_spreads:
        lines.append("🔮 <b>Любимые расклады:</b>")
        lines += [f"• {html.quote(name)}: {count} раз" for name, count in top_spreads]
        lines.append("")

    top_cards = stats.top_cards(TOP_CARDS)
    if top_cards:
        lines.append("🎴 <b>Чаще всего выпадают:</b>")
        lines += [f"• {html.quote(name)}: {count} раз" for name, count in top_cards]

    return "\n".join(lines).rstrip()


# ======================
#   КЛАВІАТУРИ
# ======================
def build_history_menu(page: HistoryPage) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []

    if page.total == 0:
        rows.append([InlineKeyboardButton(text="📝 История пуста", callback_data="ignore")])
    else:
        for entry in page.entries:
            rows.append([
                InlineKeyboardButton(
                    text=f"{entry.spread_name} - {entry.date}",
                    callback_data=f"view_history_{entry.id}",
                )
            ])

        # пагінація
        if page.total_pages > 1:
            nav: list[InlineKeyboardButton] = []
            if page.page > 0:
                nav.append(InlineKeyboardButton(text="⬅️", callback_data=f"history_page_{page.page - 1}"))
            nav.append(InlineKeyboardButton(text=f"{page.page + 1}/{page.total_pages}", callback_data="ignore"))
            if page.page < page.total_pages - 1:
                nav.append(InlineKeyboardButton(text="➡️", callback_data=f"history_page_{page.page + 1}"))
            rows.append(nav)

        rows.append([InlineKeyboardButton(text="🗑️ Очистить историю", callback_data="clear_history_confirm")])

    rows.append([InlineKeyboardButton(text=f"{EMOJI['spread']} Новый расклад", callback_data="spreads_menu")])
    rows.append([back_to_menu_button()])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_entry_view_kb(entry_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🗑️ Удалить этот расклад", callback_data=f"delete_history_{entry_id}")],
            [InlineKeyboardButton(text=f"{EMOJI['back']} К истории", callback_data="show_history")],
            [back_to_menu_button()],
        ]
    )


def build_clear_confirm_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="✅ Да, удалить все", callback_data="clear_history_confirmed"),
                InlineKeyboardButton(text="❌ Отмена", callback_data="show_history"),
            ]
        ]
    )


def load_entry(history: HistoryStore, user_id: int, entry_id: str) -> HistoryEntry:
    entry = history.get_by_id(user_id, entry_id)
    if entry is None:
        raise NotFoundError(entry_id)
    return entry


async def _show_page(callback: types.CallbackQuery, history: HistoryStore, page_no: int = 0):
    page = history.page(callback.from_user.id, page_no)
    await replace_message(callback.message, format_history_title(page), reply_markup=build_history_menu(page))


# ======================
#   ХЕНДЛЕРИ
# ======================
@history_router.callback_query(F.data == "show_history")
async def show_history(callback: types.CallbackQuery, history: HistoryStore):
    await _show_page(callback, history)
    await callback.answer()


@history_router.callback_query(F.data.startswith("history_page_"))
async def history_page(callback: types.CallbackQuery, history: HistoryStore):
    tail = callback.data.removeprefix("history_page_")
    await _show_page(callback, history, int(tail) if tail.isdigit() else 0)
    await callback.answer()


@history_router.callback_query(F.data.startswith("view_history_"))
async def view_history_entry(callback: types.CallbackQuery, history: HistoryStore):
    entry_id = callback.data.removeprefix("view_history_")
    try:
        entry = load_entry(history, callback.from_user.id, entry_id)
    except NotFoundError:
        await callback.answer("❌ Расклад не найден", show_alert=True)
        return

    await replace_message(callback.message, format_entry_view(entry), reply_markup=build_entry_view_kb(entry.id))
    await callback.answer()


@history_router.callback_query(F.data.startswith("delete_history_"))
async def delete_history_entry(callback: types.CallbackQuery, history: HistoryStore):
    entry_id = callback.data.removeprefix("delete_history_")
    if history.delete_by_id(callback.from_user.id, entry_id):
        await callback.answer("✅ Расклад удален")
    else:
        await callback.answer("❌ Расклад не найден", show_alert=True)

    await _show_page(callback, history)


@history_router.callback_query(F.data == "clear_history_confirm")
async def clear_history_confirm(callback: types.CallbackQuery):
    await replace_message(
        callback.message,
        "⚠️ <b>Очистка истории</b>\n\n"
        "Вы уверены, что хотите удалить ВСЕ расклады из истории?\n\n"
        "Это действие нельзя отменить!",
        reply_markup=build_clear_confirm_kb(),
    )
    await callback.answer()


@history_router.callback_query(F.data == "clear_history_confirmed")
async def clear_history(callback: types.CallbackQuery, history: HistoryStore):
    if history.clear(callback.from_user.id):
        await callback.answer("🧹 История очищена")
    else:
        await callback.answer("⚠️ Не удалось очистить историю", show_alert=True)

    await _show_page(callback, history)


@history_router.callback_query(F.data == "show_stats")
async def show_stats(callback: types.CallbackQuery, history: HistoryStore):
    stats = history.stats(callback.from_user.id)
    await replace_message(
        callback.message,
        format_stats(stats),
        reply_markup=InlineKeyboardMarkup(
            inline_keyboard=[
                [InlineKeyboardButton(text="📜 История", callback_data="show_history")],
                [back_to_menu_button()],
            ]
        ),
    )
    await callback.answer()
