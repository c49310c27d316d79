"""Card-input flow: parse, count check, LLM call, history, session close."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from modules.interpretation import TIPS, handle_cards_input, on_text
from tarot.errors import UpstreamError
from tarot.sessions import SessionRegistry

USER = 777


def _message(text):
    message = MagicMock()
    message.text = text
    message.from_user.id = USER
    message.chat.id = USER
    message.answer = AsyncMock()
    message.bot.send_chat_action = AsyncMock()
    return message


def _sent_texts(message):
    return [call.args[0] for call in message.answer.await_args_list]


def _callbacks(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


@pytest.fixture
def sessions():
    return SessionRegistry()


@pytest.fixture
def oracle():
    client = MagicMock()
    client.interpret = AsyncMock(return_value="Карты говорят: <всё будет> хорошо & спокойно")
    return client


@pytest.fixture
def open_three(sessions, ru_catalog):
    return sessions.open(USER, ru_catalog.get_spread("three_cards"))


async def test_successful_reading(open_three, ru_catalog, sessions, store, oracle):
    message = _message("Шут, Маг, Звезда перевернутая")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    prompt = oracle.interpret.await_args.args[0]
    assert "Звезда (перевернутая)" in prompt
    assert sessions.get(USER) is None

    entries = store.list(USER)
    assert len(entries) == 1
    assert entries[0].spread_name == "Три карты"

    texts = _sent_texts(message)
    assert "⬇️ перевернутая" in texts[0]
    assert "&lt;всё будет&gt; хорошо &amp; спокойно" in texts[-1]
    final_kb = message.answer.await_args_list[-1].kwargs["reply_markup"]
    assert f"view_history_{entries[0].id}" in _callbacks(final_kb)


async def test_unknown_card_keeps_session_open(open_three, ru_catalog, sessions, store, oracle):
    message = _message("Шут, Дурак, Маг")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    assert sessions.get(USER) is open_three
    oracle.interpret.assert_not_awaited()
    assert 'Карта "Дурак" не найдена' in _sent_texts(message)[0]


async def test_wrong_count_keeps_session_open(open_three, ru_catalog, sessions, store, oracle):
    message = _message("Шут, Маг")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    assert sessions.get(USER) is open_three
    oracle.interpret.assert_not_awaited()
    assert "нужно 3 карт(ы), а вы ввели 2" in _sent_texts(message)[0]
    assert store.list(USER) == []


async def test_upstream_failure_closes_session(open_three, ru_catalog, sessions, store, oracle):
    oracle.interpret.side_effect = UpstreamError("boom", status=500)
    message = _message("Шут, Маг, Звезда")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    assert sessions.get(USER) is None
    assert store.list(USER) == []
    assert "ошибка при получении толкования" in _sent_texts(message)[-1]


async def test_history_failure_still_delivers_reading(
    open_three, ru_catalog, sessions, store, oracle, monkeypatch,
):
    def fail(*args):
        raise OSError("read-only")

    monkeypatch.setattr("tarot.history_store.os.replace", fail)
    message = _message("Шут, Маг, Звезда")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    assert sessions.get(USER) is None
    final_kb = message.answer.await_args_list[-1].kwargs["reply_markup"]
    assert "ignore" in _callbacks(final_kb)


async def test_new_session_opened_during_call_survives(open_three, ru_catalog, sessions, store, oracle):
    async def reopen(prompt):
        sessions.open(USER, ru_catalog.get_spread("one_card"))
        return "ok"

    oracle.interpret.side_effect = reopen

    await handle_cards_input(_message("Шут, Маг, Звезда"), open_three, ru_catalog, sessions, store, oracle)

    assert sessions.get(USER).spread_id == "one_card"


async def test_long_interpretation_is_split(open_three, ru_catalog, sessions, store, oracle):
    oracle.interpret.return_value = "\n".join(["строка толкования " * 10] * 60)
    message = _message("Шут, Маг, Звезда")

    await handle_cards_input(message, open_three, ru_catalog, sessions, store, oracle)

    texts = _sent_texts(message)
    assert all(len(text) <= 4000 for text in texts)
    assert len(texts) > 3


async def test_free_text_without_session_gets_tip(ru_catalog, sessions, store, oracle):
    message = _message("привет")

    await on_text(message, ru_catalog, sessions, store, oracle)

    assert _sent_texts(message)[0] in TIPS
    oracle.interpret.assert_not_awaited()


async def test_free_text_with_session_is_parsed(open_three, ru_catalog, sessions, store, oracle):
    await on_text(_message("Шут, Маг, Звезда"), ru_catalog, sessions, store, oracle)

    oracle.interpret.assert_awaited_once()
    assert len(store.list(USER)) == 1
