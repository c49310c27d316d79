"""Shared fixtures: small in-memory catalogs and a history store in tmp_path."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from tarot.catalog import Catalog
from tarot.history_store import HistoryStore
from tarot.models import Card, Spread


DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def make_card(name, name_en, emoji="🎴", arcana="major", suit=None, image=None) -> Card:
    return Card(
        name=name,
        name_en=name_en,
        emoji=emoji,
        description=f"{name} description",
        upright=f"{name} upright",
        reversed=f"{name} reversed",
        keywords=("one", "two"),
        arcana=arcana,
        suit=suit,
        image=image,
    )


def make_spread(spread_id, name, positions) -> Spread:
    return Spread(
        id=spread_id,
        name=name,
        cards_count=len(positions),
        positions=tuple(positions),
        description=f"{name} description",
        instruction="Shuffle and draw",
    )


class StepClock:
    """datetime.now replacement: every call moves forward by `step`."""

    def __init__(self, start=datetime(2024, 3, 15, 10, 30), step=timedelta(seconds=0)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def ru_catalog() -> Catalog:
    major = [
        make_card("Шут", "The Fool", "🃏"),
        make_card("Маг", "The Magician", "🎩"),
        make_card("Императрица", "The Empress", "👑"),
        make_card("Звезда", "The Star", "⭐"),
        make_card("Башня", "The Tower", "🗼"),
    ]
    minor = {
        "wands": [make_card("Туз Жезлов", "Ace of Wands", "🔥", "minor", "wands")],
        "cups": [make_card("Двойка Кубков", "Two of Cups", "💧", "minor", "cups")],
        "swords": [make_card("Тройка Мечей", "Three of Swords", "⚔️", "minor", "swords")],
        "pentacles": [],
    }
    spreads = [
        make_spread("one_card", "Одна карта", ["1. Ответ - суть ситуации"]),
        make_spread(
            "three_cards",
            "Три карты",
            ["1. Прошлое - события", "2. Настоящее - сейчас", "3. Будущее - вероятный исход"],
        ),
    ]
    return Catalog(major, minor, spreads)


@pytest.fixture
def en_catalog() -> Catalog:
    major = [
        make_card("Fool", "The Fool"),
        make_card("Magician", "The Magician"),
        make_card("Star", "The Star"),
    ]
    spreads = [
        make_spread("three_cards", "Three Cards", ["Past", "Present", "Future"]),
        make_spread("two_cards", "Two Cards", ["Situation", "Advice"]),
    ]
    return Catalog(major, {}, spreads)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(tmp_path, clock) -> HistoryStore:
    return HistoryStore(tmp_path / "history", clock=clock)


@pytest.fixture
def card_factory():
    return make_card
