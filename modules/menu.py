import logging

from aiogram import Router, types, F, html
from aiogram.filters import Command, CommandStart
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from modules.messaging import replace_message
import config


logger = logging.getLogger(__name__)

menu_router = Router()

EMOJI = config.EMOJI


# ======================
#   ГОЛОВНЕ МЕНЮ
# ======================
def build_main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=f"{EMOJI['cards']} Узнать о картах Таро", callback_data="cards_menu")],
            [InlineKeyboardButton(text=f"{EMOJI['spread']} Выбрать расклад", callback_data="spreads_menu")],
            [
                InlineKeyboardButton(text="🎴 Карта дня", callback_data="card_of_day"),
                InlineKeyboardButton(text="❓ Быстрый ответ", callback_data="quick_answer"),
            ],
            [
                InlineKeyboardButton(text="📜 История гаданий", callback_data="show_history"),
                InlineKeyboardButton(text="📊 Статистика", callback_data="show_stats"),
            ],
            [
                InlineKeyboardButton(text=f"{EMOJI['info']} О боте", callback_data="about"),
                InlineKeyboardButton(text="📚 Помощь", callback_data="help"),
            ],
        ]
    )


def back_to_menu_button() -> InlineKeyboardButton:
    return InlineKeyboardButton(text=f"{EMOJI['back']} Главное меню", callback_data="main_menu")


def back_to_menu_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[back_to_menu_button()]])


MAIN_MENU_TEXT = "🔮 <b>Главное меню</b>\n\nВыберите действие:"

HELP_TEXT = (
    "📖 <b>Помощь по использованию бота</b>\n\n"
    "<b>🎯 Основные команды:</b>\n"
    "/start - Главное меню\n"
    "/help - Эта справка\n"
    "/menu - Вернуться в главное меню\n\n"
    "<b>📚 Как изучать карты:</b>\n"
    "1. Выберите \"Узнать о картах Таро\"\n"
    "2. Выберите Старшие Арканы или масть\n"
    "3. Нажмите на интересующую карту\n\n"
    "<b>🔮 Как сделать расклад:</b>\n"
    "1. Выберите \"Выбрать расклад\"\n"
    "2. Прочитайте описание и нажмите \"Начать расклад\"\n"
    "3. Введите названия карт через запятую\n"
    "4. Для перевернутой карты добавьте слово \"перевернутая\"\n\n"
    "<b>Пример:</b>\n"
    "<code>Шут, Маг, Императрица перевернутая</code>\n\n"
    "📜 Последние 10 раскладов сохраняются в истории."
)

ABOUT_TEXT = (
    f"{EMOJI['info']} <b>О боте</b>\n\n"
    "Бот для работы с картами Таро: справочник всех 78 карт, "
    "расклады с AI-толкованием, карта дня и быстрый ответ Да/Нет.\n\n"
    f"{EMOJI['ai']} Толкования генерирует языковая модель, "
    "воспринимайте их как повод для размышлений, а не как предсказание."
)


# ======================
#   КОМАНДИ
# ======================
@menu_router.message(CommandStart())
async def start_cmd(message: types.Message):
    first_name = html.quote(message.from_user.first_name or "друг")

    await message.answer(
        f"🔮 <b>Добро пожаловать, {first_name}!</b>\n\n"
        "Я бот для работы с картами Таро, использующий искусственный интеллект "
        "для глубоких толкований.\n\n"
        "✨ <b>Что я умею:</b>\n"
        "🎴 Справочник всех 78 карт\n"
        "🔮 Расклады с AI-толкованием\n"
        "⚡ Карта дня и быстрый ответ Да/Нет\n"
        "📜 История и статистика гаданий\n\n"
        "Выберите действие из меню ниже:",
        reply_markup=build_main_menu(),
    )
    logger.info("👋 New user: %s (@%s)", message.from_user.id, message.from_user.username)


@menu_router.message(Command("help"))
async def help_cmd(message: types.Message):
    await message.answer(HELP_TEXT, reply_markup=back_to_menu_kb())


@menu_router.message(Command("menu"))
async def menu_cmd(message: types.Message):
    await message.answer(MAIN_MENU_TEXT, reply_markup=build_main_menu())


# ======================
#   CALLBACK-И
# ======================
@menu_router.callback_query(F.data == "main_menu")
async def open_main_menu(callback: types.CallbackQuery):
    await replace_message(callback.message, MAIN_MENU_TEXT, reply_markup=build_main_menu())
    await callback.answer()


@menu_router.callback_query(F.data == "help")
async def open_help(callback: types.CallbackQuery):
    await replace_message(callback.message, HELP_TEXT, reply_markup=back_to_menu_kb())
    await callback.answer()


@menu_router.callback_query(F.data == "about")
async def open_about(callback: types.CallbackQuery):
    await replace_message(callback.message, ABOUT_TEXT, reply_markup=back_to_menu_kb())
    await callback.answer()


@menu_router.callback_query(F.data == "ignore")
async def ignore(callback: types.CallbackQuery):
    await callback.answer()
