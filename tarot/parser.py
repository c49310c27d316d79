from dataclasses import dataclass, field
from typing import List, Sequence

from tarot.catalog import Catalog, normalize_name
from tarot.errors import CountMismatchError, ParseError
from tarot.models import ResolvedCard


# Слова-позначки перевернутої карти (каталог російською)
REVERSED_MARKERS: Sequence[str] = ("перевернутая", "перевернутый", "перевернутое")
# Якщо є цей корінь, карта перевернута
REVERSAL_STEMS: Sequence[str] = ("перевернут",)


@dataclass
class ParseResult:
    resolved: List[ResolvedCard] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def parse_token(
    token: str,
    catalog: Catalog,
    markers: Sequence[str] = REVERSED_MARKERS,
    reversal_stems: Sequence[str] = REVERSAL_STEMS,
):
    """Один токен -> ResolvedCard або None."""
    folded = token.strip().casefold()
    is_reversed = any(stem.casefold() in folded for stem in reversal_stems)

    key = folded
    for marker in markers:
        key = key.replace(marker.casefold(), " ")
    key = normalize_name(key)
    if not key:
        return None

    card = catalog.find(key)
    if card is None:
        return None
    return ResolvedCard(card=card, is_reversed=is_reversed)


def parse_cards(
    raw_text: str,
    catalog: Catalog,
    markers: Sequence[str] = REVERSED_MARKERS,
    reversal_stems: Sequence[str] = REVERSAL_STEMS,
) -> ParseResult:
    """
    "Шут, Маг, Звезда перевернутая" -> три карти у тому ж порядку.
    Кількість карт тут не перевіряється, див. check_count.
    """
    result = ParseResult()
    for raw_token in raw_text.split(","):
        token = raw_token.strip()
        resolved = parse_token(token, catalog, markers, reversal_stems)
        if resolved is None:
            result.errors.append(
                ParseError(token=token, message=f'❌ Карта "{token}" не найдена')
            )
        else:
            result.resolved.append(resolved)
    return result


def check_count(resolved: Sequence[ResolvedCard], expected: int) -> None:
    if len(resolved) != expected:
        raise CountMismatchError(expected=expected, actual=len(resolved))
