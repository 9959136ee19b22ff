# mafia_nights/client/realtime.py
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Optional

from ..config import FEED_POLL_INTERVAL_SEC, RECONNECT_BASE_DELAY_SEC, RECONNECT_MAX_DELAY_SEC
from ..schemas.change import ChangeEventOut
from .queries import ChangeQueries

logger = logging.getLogger(__name__)


class Backoff:
    """base, base*2, base*4 ... を maximum で頭打ちにする"""

    def __init__(
        self,
        base: float = RECONNECT_BASE_DELAY_SEC,
        maximum: float = RECONNECT_MAX_DELAY_SEC,
        factor: float = 2.0,
    ):
        self.base = base
        self.maximum = maximum
        self.factor = factor
        self.attempt = 0

    def next_delay(self) -> float:
        delay = min(self.maximum, self.base * self.factor ** self.attempt)
        self.attempt += 1
        return delay

    def reset(self) -> None:
        self.attempt = 0


class ChangeFeed:
    """
    1テーブル・1部屋分の変更フィード購読。

    connect() で「今」のカーソルを取り、events() でそれ以降の
    INSERT/UPDATE/DELETE を古い順に流す。通信に失敗したら Backoff の間隔で
    再試行する。カーソルは保持しているので再接続後に取りこぼしはない。
    """

    def __init__(
        self,
        changes: ChangeQueries,
        table: str,
        room_id: Optional[str] = None,
        *,
        poll_interval: float = FEED_POLL_INTERVAL_SEC,
        backoff: Optional[Backoff] = None,
        page_size: int = 100,
        on_connect: Optional[Callable[[], Awaitable[None]]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._changes = changes
        self.table = table
        self.room_id = room_id
        self.poll_interval = poll_interval
        self.backoff = backoff or Backoff()
        self.page_size = page_size
        self.on_connect = on_connect
        self._sleep = sleep
        self.cursor: Optional[int] = None

    @property
    def connected(self) -> bool:
        return self.cursor is not None

    async def connect(self) -> bool:
        res = await self._changes.poll(self.table, self.room_id)
        if res.error:
            logger.warning("Could not open %s feed: %s", self.table, res.error.message)
            return False
        self.cursor = res.data.cursor
        self.backoff.reset()
        return True

    async def _retry_later(self, reason: str) -> None:
        delay = self.backoff.next_delay()
        logger.warning("%s feed: %s, retrying in %.1fs", self.table, reason, delay)
        await self._sleep(delay)

    async def events(self) -> AsyncIterator[ChangeEventOut]:
        while True:
            if self.cursor is None:
                if not await self.connect():
                    await self._retry_later("connect failed")
                    continue
                # 接続できるまでの変更は取りこぼしているので、呼び出し側で取り直す
                if self.on_connect is not None:
                    await self.on_connect()

            res = await self._changes.poll(self.table, self.room_id, after=self.cursor, limit=self.page_size)
            if res.error:
                await self._retry_later(res.error.message)
                continue

            self.backoff.reset()
            feed = res.data
            self.cursor = feed.cursor
            for event in feed.events:
                yield event

            if len(feed.events) < self.page_size:
                await self._sleep(self.poll_interval)
