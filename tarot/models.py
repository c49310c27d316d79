from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


Suit = Literal["wands", "cups", "swords", "pentacles"]
SUITS: Tuple[str, ...] = ("wands", "cups", "swords", "pentacles")


# ======================
#   ДОВІДКОВІ ДАНІ (read-only)
# ======================
class Card(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    name_en: str = Field(alias="nameEn", min_length=1)
    emoji: str = "🎴"
    description: str
    upright: str
    reversed: str
    keywords: Tuple[str, ...] = ()
    image: Optional[str] = None
    arcana: Literal["major", "minor"] = "major"
    suit: Optional[Suit] = None

    def meaning(self, is_reversed: bool) -> str:
        return self.reversed if is_reversed else self.upright


class Spread(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, pattern=r"^[a-z0-9_]+$")
    name: str = Field(min_length=1)
    emoji: str = "🔮"
    cards_count: int = Field(alias="cardsCount", gt=0)
    positions: Tuple[str, ...]
    description: str = ""
    instruction: str = ""

    @model_validator(mode="after")
    def check_positions(self) -> "Spread":
        if len(self.positions) != self.cards_count:
            raise ValueError(
                f"spread {self.id!r}: {len(self.positions)} positions "
                f"for cardsCount={self.cards_count}"
            )
        return self


# ======================
#   ІСТОРІЯ (persisted)
# ======================
class CardSnapshot(BaseModel):
    """Копія карти на момент розкладу, не посилання на каталог."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    emoji: str = "🎴"
    is_reversed: bool = Field(default=False, alias="isReversed")


class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    timestamp: str
    spread_name: str = Field(alias="spreadName")
    cards: list[CardSnapshot] = Field(default_factory=list)
    interpretation: str = ""
    date: str = ""

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# ======================
#   ТИМЧАСОВІ ОБ'ЄКТИ
# ======================
@dataclass(frozen=True)
class ResolvedCard:
    card: Card
    is_reversed: bool = False

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def emoji(self) -> str:
        return self.card.emoji

    def snapshot(self) -> CardSnapshot:
        return CardSnapshot(
            name=self.card.name,
            emoji=self.card.emoji,
            is_reversed=self.is_reversed,
        )
