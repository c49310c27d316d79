import logging
import random
from typing import Sequence

from aiogram import Router, types, F, html
from aiogram.enums import ChatAction
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.menu import back_to_menu_button, back_to_menu_kb
from modules.messaging import split_text
from tarot.catalog import Catalog
from tarot.errors import CountMismatchError, UpstreamError
from tarot.history_store import HistoryStore
from tarot.llm_client import InterpretationClient
from tarot.models import ResolvedCard
from tarot.parser import check_count, parse_cards
from tarot.prompt import compose_prompt
from tarot.sessions import Session, SessionRegistry
import config


logger = logging.getLogger(__name__)

interpretation_router = Router()

EMOJI = config.EMOJI

TIPS = (
    "💡 Хотите узнать о картах Таро? Используйте /menu",
    "🔮 Готовы сделать расклад? Нажмите /start",
    "❓ Нужна помощь? Команда /help",
    "🎴 Попробуйте \"Карту дня\" для быстрого совета!",
    "✨ Выберите расклад в главном меню /menu",
)


# ======================
#   ФОРМАТУВАННЯ
# ======================
def format_cards_list(cards: Sequence[ResolvedCard], positions: Sequence[str]) -> str:
    lines = ["🎴 <b>Ваши карты:</b>", ""]
    for i, card in enumerate(cards):
        # "1. Прошлое - события..." -> "1. Прошлое"
        label = positions[i].split(" - ")[0] if i < len(positions) else f"{i + 1}."
        orientation = "⬇️ перевернутая" if card.is_reversed else "⬆️ прямая"
        lines.append(f"{label} {card.emoji} {card.name} ({orientation})")
    return "\n".join(lines)


def format_parse_errors(errors) -> str:
    return (
        "❌ <b>Ошибки при распознавании карт:</b>\n\n"
        + "\n".join(html.quote(str(error)) for error in errors)
        + "\n\nПожалуйста, проверьте названия карт и попробуйте снова."
    )


def format_count_mismatch(session: Session, error: CountMismatchError) -> str:
    return (
        "❌ Неверное количество карт!\n\n"
        f"Для расклада \"{session.spread_name}\" нужно {error.expected} карт(ы), "
        f"а вы ввели {error.actual}.\n\n"
        "Попробуйте еще раз."
    )


def build_result_kb(entry_id: str | None) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    if entry_id is not None:
        rows.append([InlineKeyboardButton(text="💾 Сохранено в историю", callback_data=f"view_history_{entry_id}")])
    else:
        rows.append([InlineKeyboardButton(text="⚠️ Не удалось сохранить в историю", callback_data="ignore")])
    rows.append([
        InlineKeyboardButton(text=f"{EMOJI['spread']} Новый расклад", callback_data="spreads_menu"),
        InlineKeyboardButton(text="📜 История", callback_data="show_history"),
    ])
    rows.append([back_to_menu_button()])
    return InlineKeyboardMarkup(inline_keyboard=rows)


async def _send(message: types.Message, text: str, **kwargs) -> None:
    try:
        await message.answer(text, **kwargs)
    except TelegramAPIError as e:
        logger.error("Send failed in chat %s: %s", message.chat.id, e)


# ======================
#   ВВЕДЕННЯ КАРТ
# ======================
async def handle_cards_input(
    message: types.Message,
    session: Session,
    catalog: Catalog,
    sessions: SessionRegistry,
    history: HistoryStore,
    oracle: InterpretationClient,
) -> None:
    user_id = message.from_user.id

    # 1) розбір тексту; при помилках сесія лишається відкритою
    result = parse_cards(message.text, catalog)
    if result.errors:
        await _send(message, format_parse_errors(result.errors))
        return

    try:
        check_count(result.resolved, session.cards_count)
    except CountMismatchError as e:
        await _send(message, format_count_mismatch(session, e))
        return

    # 2) карти прийняті
    await _send(message, format_cards_list(result.resolved, session.positions))
    await _send(message, f"{EMOJI['ai']} Анализирую расклад...\nЭто может занять несколько секунд.")
    try:
        await message.bot.send_chat_action(message.chat.id, ChatAction.TYPING)
    except TelegramAPIError:
        pass

    # 3) LLM: одна спроба; при збої сесію закриваємо
    prompt = compose_prompt(session.spread_name, session.positions, result.resolved)
    try:
        interpretation = await oracle.interpret(prompt)
    except UpstreamError as e:
        logger.error("Interpretation failed for user %s: %s", user_id, e)
        sessions.close(user_id, session)
        await _send(
            message,
            "❌ Произошла ошибка при получении толкования.\n\n"
            "Пожалуйста, попробуйте позже или выберите другой расклад.",
            reply_markup=back_to_menu_kb(),
        )
        return

    # 4) історія: збій запису не ламає відповідь
    saved = history.append(user_id, session.spread_name, result.resolved, interpretation)
    entry_id = saved.entry.id if saved.saved else None

    text = (
        f"🔮 <b>Толкование расклада \"{session.spread_name}\"</b>\n\n"
        f"{html.quote(interpretation)}"
    )
    chunks = split_text(text)
    for chunk in chunks[:-1]:
        await _send(message, chunk)
    await _send(message, chunks[-1], reply_markup=build_result_kb(entry_id))

    sessions.close(user_id, session)
    logger.info("✅ User %s got interpretation of %s", user_id, session.spread_name)


@interpretation_router.message(F.text, ~F.text.startswith("/"))
async def on_text(
    message: types.Message,
    catalog: Catalog,
    sessions: SessionRegistry,
    history: HistoryStore,
    oracle: InterpretationClient,
):
    session = sessions.get(message.from_user.id)
    if session is None:
        await _send(
            message,
            random.choice(TIPS),
            reply_markup=InlineKeyboardMarkup(
                inline_keyboard=[[InlineKeyboardButton(text="🔮 Открыть меню", callback_data="main_menu")]]
            ),
        )
        return

    await handle_cards_input(message, session, catalog, sessions, history, oracle)
