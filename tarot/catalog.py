import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from tarot.errors import CatalogError
from tarot.models import SUITS, Card, Spread


logger = logging.getLogger(__name__)


def normalize_name(text: str) -> str:
    """Ключ пошуку: нижній регістр + одинарні пробіли."""
    return " ".join(text.casefold().split())


class Catalog:
    """
    Колода (78 карт) + розклади. Завантажується один раз і далі тільки читається.
    Індекс «назва → карта» будується одразу при завантаженні.
    """

    def __init__(
        self,
        major: Iterable[Card],
        minor: Dict[str, Iterable[Card]],
        spreads: Iterable[Spread],
    ):
        self.major: Tuple[Card, ...] = tuple(major)
        self.minor: Dict[str, Tuple[Card, ...]] = {
            suit: tuple(minor.get(suit, ())) for suit in SUITS
        }
        self.spreads: Tuple[Spread, ...] = tuple(spreads)

        self._spreads_by_id: Dict[str, Spread] = {}
        for spread in self.spreads:
            if spread.id in self._spreads_by_id:
                raise CatalogError(f"duplicate spread id {spread.id!r}")
            self._spreads_by_id[spread.id] = spread

        # перша карта з такою назвою виграє (старші аркани йдуть першими)
        self._index: Dict[str, Card] = {}
        for card in self.all_cards():
            self._index.setdefault(normalize_name(card.name), card)
            self._index.setdefault(normalize_name(card.name_en), card)

    # ======================
    #   ЗАВАНТАЖЕННЯ
    # ======================
    @classmethod
    def load(cls, cards_path, spreads_path) -> "Catalog":
        cards_doc = _read_json(Path(cards_path))
        spreads_doc = _read_json(Path(spreads_path))

        try:
            major = [
                Card.model_validate({**raw, "arcana": "major", "suit": None})
                for raw in cards_doc["majorArcana"]
            ]
            minor_doc = cards_doc["minorArcana"]
            minor = {
                suit: [
                    Card.model_validate({**raw, "arcana": "minor", "suit": suit})
                    for raw in minor_doc.get(suit, [])
                ]
                for suit in SUITS
            }
            spreads = [Spread.model_validate(raw) for raw in spreads_doc["spreads"]]
        except (KeyError, TypeError, AttributeError) as e:
            raise CatalogError(f"catalog structure is broken: {e!r}") from e
        except ValidationError as e:
            raise CatalogError(f"catalog schema violation:\n{e}") from e

        catalog = cls(major, minor, spreads)
        logger.info(
            "Catalog loaded: %d cards, %d spreads",
            len(catalog.all_cards()),
            len(catalog.spreads),
        )
        return catalog

    # ======================
    #   КАРТИ
    # ======================
    def all_cards(self) -> List[Card]:
        cards = list(self.major)
        for suit in SUITS:
            cards.extend(self.minor[suit])
        return cards

    def cards_of(self, arcana_type: str) -> Tuple[Card, ...]:
        """'major' або назва масті; невідомий тип: порожньо."""
        if arcana_type == "major":
            return self.major
        return self.minor.get(arcana_type, ())

    def find(self, name: str) -> Optional[Card]:
        return self._index.get(normalize_name(name))

    # ======================
    #   РОЗКЛАДИ
    # ======================
    def get_spread(self, spread_id: str) -> Optional[Spread]:
        return self._spreads_by_id.get(spread_id)


def _read_json(path: Path):
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise CatalogError(f"cannot read {path}: {e}") from e
