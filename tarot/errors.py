from dataclasses import dataclass
from typing import Optional


class TarotError(Exception):
    """Базова помилка бота."""


class CatalogError(TarotError):
    """Файл каталогу карт / раскладів не відповідає схемі. Бот не стартує."""


@dataclass(frozen=True)
class ParseError:
    """
    Помилка розпізнавання одного токена.
    Не кидається, а збирається списком у ParseResult.errors.
    """
    token: str
    message: str

    def __str__(self) -> str:
        return self.message


class CountMismatchError(TarotError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"expected {expected} cards, got {actual}")
        self.expected = expected
        self.actual = actual


class UpstreamError(TarotError):
    """Збій LLM-ендпоінта: статус, транспорт або битий payload."""

    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(f"[{status}] {reason}" if status else reason)
        self.reason = reason
        self.status = status


class PersistenceError(TarotError):
    """Не вдалося прочитати / записати файл історії."""


class NotFoundError(TarotError):
    """Запис історії зник (видалений або витіснений лімітом)."""
