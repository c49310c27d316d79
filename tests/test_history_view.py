from unittest.mock import AsyncMock, MagicMock

from modules.history import (
    build_history_menu,
    delete_history_entry,
    format_entry_view,
    format_stats,
    view_history_entry,
)
from tarot.history_store import HistoryPage, HistoryStats
from tarot.models import CardSnapshot, HistoryEntry, ResolvedCard

USER = 31


def _entry(entry_id="1", interpretation="Всё хорошо", cards=None):
    return HistoryEntry(
        id=entry_id,
        timestamp="2024-03-15T10:30:00",
        spread_name="Три карты",
        cards=cards or [CardSnapshot(name="Шут", emoji="🃏", is_reversed=True)],
        interpretation=interpretation,
        date="15.03.2024, 10:30",
    )


def _callback(data):
    callback = MagicMock()
    callback.data = data
    callback.from_user.id = USER
    callback.answer = AsyncMock()
    callback.message.delete = AsyncMock()
    callback.message.answer = AsyncMock()
    return callback


def _callbacks(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def test_entry_view_lists_cards_and_reading():
    text = format_entry_view(_entry())

    assert "Три карты" in text
    assert "1. 🃏 Шут ⬇️" in text
    assert text.endswith("Всё хорошо")


def test_long_entry_view_is_truncated():
    text = format_entry_view(_entry(interpretation="а" * 5000))

    assert len(text) < 4096
    assert text.endswith("<i>(Толкование слишком длинное, показана часть)</i>")


def test_stats_text():
    stats = HistoryStats(total=2, first_date="01.01.2024, 09:00", last_date="02.01.2024, 09:00")
    stats.spread_counts.update({"Три карты": 2})
    stats.card_counts.update({"Шут": 2, "Маг": 1})

    text = format_stats(stats)

    assert "Всего раскладов: 2" in text
    assert "• Три карты: 2 раз" in text
    assert text.index("Шут") < text.index("Маг")


def test_stats_text_empty():
    assert "нет раскладов" in format_stats(HistoryStats())


def test_history_menu_pagination():
    page = HistoryPage(entries=[_entry(str(i)) for i in range(5)], page=1, total_pages=3, total=12)
    data = _callbacks(build_history_menu(page))

    assert [d for d in data if d.startswith("view_history_")] == [f"view_history_{i}" for i in range(5)]
    assert "history_page_0" in data
    assert "history_page_2" in data
    assert "clear_history_confirm" in data


def test_empty_history_menu():
    data = _callbacks(build_history_menu(HistoryPage(entries=[], page=0, total_pages=1, total=0)))
    assert "clear_history_confirm" not in data
    assert "spreads_menu" in data


async def test_view_missing_entry_alerts(store):
    callback = _callback("view_history_404")

    await view_history_entry(callback, store)

    callback.answer.assert_awaited_once_with("❌ Расклад не найден", show_alert=True)
    callback.message.answer.assert_not_awaited()


async def test_view_existing_entry(store, ru_catalog):
    saved = store.append(USER, "Три карты", [ResolvedCard(ru_catalog.find("Маг"))], "Текст")
    callback = _callback(f"view_history_{saved.entry.id}")

    await view_history_entry(callback, store)

    text = callback.message.answer.await_args.args[0]
    assert "Маг" in text and "Текст" in text
    markup = callback.message.answer.await_args.kwargs["reply_markup"]
    assert f"delete_history_{saved.entry.id}" in _callbacks(markup)


async def test_delete_entry(store, ru_catalog):
    saved = store.append(USER, "Три карты", [ResolvedCard(ru_catalog.find("Маг"))], "Текст")

    await delete_history_entry(_callback(f"delete_history_{saved.entry.id}"), store)
    assert store.list(USER) == []

    callback = _callback(f"delete_history_{saved.entry.id}")
    await delete_history_entry(callback, store)
    callback.answer.assert_awaited_once_with("❌ Расклад не найден", show_alert=True)


def test_truncation_never_splits_an_entity():
    for pad in range(5):
        text = format_entry_view(_entry(interpretation="a" * pad + "&" * 2000))

        assert len(text) < 4096
        body, note = text.split("...\n\n<i>(", 1)
        assert note == "Толкование слишком длинное, показана часть)</i>"
        assert body.endswith("&amp;")
        assert body.count("&") == body.count("&amp;")
