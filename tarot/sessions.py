import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from tarot.models import Spread


logger = logging.getLogger(__name__)

SESSION_TTL = 60 * 60          # сесія живе годину
SWEEP_INTERVAL = 30 * 60       # прибирання кожні 30 хв


@dataclass
class Session:
    spread_id: str
    spread_name: str
    cards_count: int
    positions: Tuple[str, ...]
    created_at: float = field(default_factory=time.time)


class SessionRegistry:
    """
    Активні розклади: user_id -> Session (не більше однієї на користувача).
    Всі зміни йдуть з event loop, тому окремий лок не потрібен.
    """

    def __init__(self, ttl: float = SESSION_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[int, Session] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, user_id: int, spread: Spread) -> Session:
        """Стара сесія (якщо була) просто замінюється."""
        session = Session(
            spread_id=spread.id,
            spread_name=spread.name,
            cards_count=spread.cards_count,
            positions=tuple(spread.positions),
            created_at=self._clock(),
        )
        self._sessions[user_id] = session
        logger.info("User %s started spread %s", user_id, spread.name)
        return session

    def get(self, user_id: int) -> Optional[Session]:
        return self._sessions.get(user_id)

    def close(self, user_id: int, session: Optional[Session] = None) -> None:
        """
        Ідемпотентно. Якщо передано session, видаляємо тільки її,
        щоб відповідь на старий розклад не закрила щойно відкритий новий.
        """
        current = self._sessions.get(user_id)
        if current is None:
            return
        if session is not None and current is not session:
            return
        del self._sessions[user_id]

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        expired = [
            user_id
            for user_id, session in self._sessions.items()
            if now - session.created_at > self.ttl
        ]
        for user_id in expired:
            del self._sessions[user_id]
            logger.info("🧹 Removed stale session of user %s", user_id)
        return len(expired)

    # ======================
    #   ФОНОВЕ ПРИБИРАННЯ
    # ======================
    async def run_sweeper(self, interval: float = SWEEP_INTERVAL) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    def start(self, interval: float = SWEEP_INTERVAL) -> asyncio.Task:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self.run_sweeper(interval))
        return self._sweeper

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
