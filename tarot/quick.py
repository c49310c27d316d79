import random
from typing import NamedTuple

from tarot.catalog import Catalog
from tarot.models import ResolvedCard


CARD_OF_DAY_REVERSED_CHANCE = 0.3
QUICK_ANSWER_REVERSED_CHANCE = 0.5

# Карти з "позитивною" енергією. Перевірка: входження підрядка в назву,
# тому "Туз" покриває всіх тузів.
POSITIVE_CARDS = (
    "Шут",
    "Маг",
    "Солнце",
    "Звезда",
    "Мир",
    "Туз",
    "Четверка Жезлов",
    "Шестерка Жезлов",
    "Девятка Кубков",
    "Десятка Кубков",
)


class QuickAnswer(NamedTuple):
    verdict: str
    emoji: str
    positive: bool


def draw_card(catalog: Catalog, reversed_chance: float, rng=random) -> ResolvedCard:
    card = rng.choice(catalog.all_cards())
    return ResolvedCard(card=card, is_reversed=rng.random() < reversed_chance)


def is_positive(card_name: str) -> bool:
    return any(name in card_name for name in POSITIVE_CARDS)


def quick_answer(drawn: ResolvedCard) -> QuickAnswer:
    positive = is_positive(drawn.name)
    if drawn.is_reversed:
        verdict = "Скорее НЕТ" if positive else "Точно НЕТ"
        return QuickAnswer(verdict, "❌", positive)
    verdict = "Точно ДА" if positive else "Скорее ДА"
    return QuickAnswer(verdict, "✅", positive)
