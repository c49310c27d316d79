import json
import logging
import os
import tempfile
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from math import ceil
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from pydantic import ValidationError

from tarot.errors import PersistenceError
from tarot.models import HistoryEntry, ResolvedCard


logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
PAGE_SIZE = 5
DATE_FORMAT = "%d.%m.%Y, %H:%M"


class AppendResult(NamedTuple):
    entry: HistoryEntry
    saved: bool


@dataclass
class HistoryPage:
    entries: List[HistoryEntry]
    page: int
    total_pages: int
    total: int


@dataclass
class HistoryStats:
    total: int = 0
    spread_counts: Counter = field(default_factory=Counter)
    card_counts: Counter = field(default_factory=Counter)
    first_date: Optional[str] = None
    last_date: Optional[str] = None

    def top_spreads(self, n: int = 3) -> List[Tuple[str, int]]:
        return self.spread_counts.most_common(n)

    def top_cards(self, n: int = 5) -> List[Tuple[str, int]]:
        return self.card_counts.most_common(n)


class HistoryStore:
    """
    Історія розкладів: один JSON-файл на користувача, свіжі зверху, максимум 10.
    Кожен запис повністю перезаписує файл.
    """

    def __init__(
        self,
        directory,
        limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.directory = Path(directory)
        self.limit = limit
        self._clock = clock
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id) -> Path:
        return self.directory / f"{user_id}.json"

    # ======================
    #   ЧИТАННЯ / ЗАПИС
    # ======================
    def _load(self, user_id) -> List[HistoryEntry]:
        path = self._path(user_id)
        if not path.exists():
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("history file must hold a list")
            return [HistoryEntry.model_validate(item) for item in raw]
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Cannot read history of user %s: %s", user_id, e)
            return []

    def _write(self, user_id, entries: Sequence[HistoryEntry]) -> None:
        path = self._path(user_id)
        payload = json.dumps(
            [entry.to_json() for entry in entries], ensure_ascii=False, indent=2
        )
        try:
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        except OSError as e:
            raise PersistenceError(f"cannot write {path}: {e}") from e

    def _save(self, user_id, entries: Sequence[HistoryEntry]) -> bool:
        try:
            self._write(user_id, entries)
        except PersistenceError as e:
            logger.error("History of user %s not saved: %s", user_id, e)
            return False
        return True

    def _new_id(self, entries: Sequence[HistoryEntry], now: datetime) -> str:
        taken = {entry.id for entry in entries}
        value = int(now.timestamp() * 1000)
        while str(value) in taken:
            value += 1
        return str(value)

    # ======================
    #   ПУБЛІЧНІ ФУНКЦІЇ
    # ======================
    def append(
        self,
        user_id,
        spread_name: str,
        cards: Sequence[ResolvedCard],
        interpretation: str,
    ) -> AppendResult:
        entries = self._load(user_id)
        now = self._clock()

        entry = HistoryEntry(
            id=self._new_id(entries, now),
            timestamp=now.isoformat(),
            spread_name=spread_name,
            cards=[card.snapshot() for card in cards],
            interpretation=interpretation,
            date=now.strftime(DATE_FORMAT),
        )

        entries.insert(0, entry)
        del entries[self.limit:]

        saved = self._save(user_id, entries)
        if saved:
            logger.info("💾 Saved spread %s to history of user %s", entry.id, user_id)
        return AppendResult(entry, saved)

    def list(self, user_id, limit: Optional[int] = None) -> List[HistoryEntry]:
        entries = self._load(user_id)
        return entries[: self.limit if limit is None else limit]

    def get_by_id(self, user_id, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._load(user_id):
            if entry.id == entry_id:
                return entry
        return None

    def delete_by_id(self, user_id, entry_id: str) -> bool:
        entries = self._load(user_id)
        filtered = [entry for entry in entries if entry.id != entry_id]
        if len(filtered) == len(entries):
            return False

        if not self._save(user_id, filtered):
            return False
        logger.info("🗑️ Deleted spread %s from history of user %s", entry_id, user_id)
        return True

    def clear(self, user_id) -> bool:
        saved = self._save(user_id, [])
        if saved:
            logger.info("🧹 Cleared history of user %s", user_id)
        return saved

    def page(self, user_id, page: int = 0, per_page: int = PAGE_SIZE) -> HistoryPage:
        """Сторінки рахуються з 0; номер за межами притискається до краю."""
        entries = self.list(user_id)
        total_pages = max(1, ceil(len(entries) / per_page))
        page = max(0, min(page, total_pages - 1))
        start = page * per_page
        return HistoryPage(
            entries=entries[start:start + per_page],
            page=page,
            total_pages=total_pages,
            total=len(entries),
        )

    def stats(self, user_id) -> HistoryStats:
        entries = self._load(user_id)
        stats = HistoryStats(total=len(entries))
        if not entries:
            return stats

        stats.first_date = entries[-1].date
        stats.last_date = entries[0].date
        for entry in entries:
            stats.spread_counts[entry.spread_name] += 1
            for card in entry.cards:
                stats.card_counts[card.name] += 1
        return stats
