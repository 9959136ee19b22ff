# mafia_nights/client/sync.py
"""
画面の状態（部屋・参加者・チャット）をバックエンドと同期する。

同期方式は SyncStrategy で差し替える:
  - PollingStrategy: 一定間隔で全部取り直す
  - SubscriptionStrategy: 変更フィードを購読し、変更があったものだけ取り直す

どちらの場合も、各コレクション（Slot）は世代番号を持つ。リクエスト発行時に
世代を振り、それより新しい世代がすでに反映済みなら応答は捨てる。
遅い応答が新しい状態を古い状態で上書きすることはない。
"""
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError

from ..config import CHAT_HISTORY_LIMIT, POLL_INTERVAL_MS, SYNC_STRATEGY
from ..schemas.change import ChangeEventOut
from ..schemas.chat import ChatMessageOut
from ..schemas.player import PlayerOut
from ..schemas.room import RoomOut
from .queries import Queries
from .realtime import Backoff, ChangeFeed
from .result import BackendError, QueryResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

UpdateListener = Callable[[set[str]], None]


class GenerationGuard:
    """発行順で最新の応答だけを通す"""

    def __init__(self):
        self.issued = 0
        self.applied = 0

    def begin(self) -> int:
        self.issued += 1
        return self.issued

    def accept(self, generation: int) -> bool:
        if generation <= self.applied:
            return False
        self.applied = generation
        return True

    def invalidate(self) -> None:
        """発行済みで未到着の応答をすべて古いものとして扱う"""
        self.applied = self.issued


class Slot(Generic[T]):
    def __init__(self, name: str, fetch: Callable[[], Awaitable[QueryResult[T]]], initial: T):
        self.name = name
        self._fetch = fetch
        self.value: T = initial
        self.error: Optional[BackendError] = None
        self.loaded = False
        self.guard = GenerationGuard()

    async def refresh(self) -> bool:
        """取り直す。状態が変わったら True"""
        generation = self.guard.begin()
        res = await self._fetch()

        if res.error:
            # エラーでは世代を進めない（手元の最後の正常値を残す）
            if generation >= self.guard.applied:
                self.error = res.error
                logger.warning("sync %s failed: %s", self.name, res.error.message)
                return True
            return False

        if not self.guard.accept(generation):
            logger.debug("dropped stale %s response (generation %d)", self.name, generation)
            return False

        self.value = res.data
        self.error = None
        self.loaded = True
        return True

    def apply_local(self, value: T) -> None:
        """フィードのイベントなど手元で確定した値を反映する"""
        self.guard.invalidate()
        self.value = value
        self.error = None
        self.loaded = True


# -----------------------------
# 同期方式
# -----------------------------

class SyncStrategy:
    async def prepare(self, sync: "Synchronizer") -> Any:
        """初回取得の前に呼ばれる。戻り値は run() に渡される"""
        return None

    async def run(self, sync: "Synchronizer", state: Any) -> None:
        raise NotImplementedError


class PollingStrategy(SyncStrategy):
    def __init__(self, interval: float = POLL_INTERVAL_MS / 1000):
        self.interval = interval

    async def run(self, sync: "Synchronizer", state: Any) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await sync.refresh()
            except Exception:
                # 次の周期でまた取りに行く
                logger.exception("poll tick failed")


class SubscriptionStrategy(SyncStrategy):
    def __init__(
        self,
        poll_interval: Optional[float] = None,
        backoff_factory: Callable[[], Backoff] = Backoff,
    ):
        self.poll_interval = poll_interval
        self.backoff_factory = backoff_factory

    async def prepare(self, sync: "Synchronizer") -> list[ChangeFeed]:
        feeds = []
        for table, room_id in sync.feeds():
            kwargs = {"poll_interval": self.poll_interval} if self.poll_interval is not None else {}
            feed = ChangeFeed(
                sync.queries.changes,
                table,
                room_id,
                backoff=self.backoff_factory(),
                on_connect=_resync(sync, table),
                **kwargs,
            )
            await feed.connect()
            feeds.append(feed)
        return feeds

    async def run(self, sync: "Synchronizer", feeds: list[ChangeFeed]) -> None:
        await asyncio.gather(*(self._listen(sync, feed) for feed in feeds))

    async def _listen(self, sync: "Synchronizer", feed: ChangeFeed) -> None:
        async for event in feed.events():
            try:
                await sync.handle_change(event)
            except Exception:
                logger.exception("failed to apply %s %s event", event.table_name, event.event)


def _resync(sync: "Synchronizer", table: str) -> Callable[[], Awaitable[None]]:
    async def resync() -> None:
        await sync.refresh(*sync.table_slots.get(table, ()))

    return resync


def strategy_from_config(name: str = SYNC_STRATEGY) -> SyncStrategy:
    if name == "poll":
        return PollingStrategy()
    if name == "subscribe":
        return SubscriptionStrategy()
    raise ValueError(f"Unknown sync strategy: {name!r}")


# -----------------------------
# 同期本体
# -----------------------------

class Synchronizer:
    """
    `async with` で使う。入るときに初回取得と購読/ポーリング開始、
    抜けるときに（例外でも）バックグラウンド処理を必ず止める。
    """

    # 変更フィードのテーブル名 -> 取り直す Slot 名
    table_slots: dict[str, tuple[str, ...]] = {}

    def __init__(self, queries: Queries, strategy: Optional[SyncStrategy] = None):
        self.queries = queries
        self.strategy = strategy or strategy_from_config()
        self.slots: dict[str, Slot] = {}
        self._task: Optional[asyncio.Task] = None
        self._listeners: list[UpdateListener] = []

    def add_slot(self, name: str, fetch: Callable[[], Awaitable[QueryResult]], initial: Any) -> Slot:
        slot = Slot(name, fetch, initial)
        self.slots[name] = slot
        return slot

    def feeds(self) -> list[tuple[str, Optional[str]]]:
        """購読する (テーブル, room_id) の組"""
        return [(table, None) for table in self.table_slots]

    # --- state ---

    @property
    def loading(self) -> bool:
        return any(not s.loaded and s.error is None for s in self.slots.values())

    @property
    def errors(self) -> dict[str, BackendError]:
        return {name: s.error for name, s in self.slots.items() if s.error is not None}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_update(self, listener: UpdateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, changed: set[str]) -> None:
        if not changed:
            return
        for listener in list(self._listeners):
            listener(changed)

    # --- sync ---

    async def refresh(self, *names: str) -> set[str]:
        """指定した Slot（省略時は全部）を並行して取り直す"""
        targets = [self.slots[n] for n in names] if names else list(self.slots.values())
        results = await asyncio.gather(*(slot.refresh() for slot in targets))
        changed = {slot.name for slot, did_change in zip(targets, results) if did_change}
        self._emit(changed)
        return changed

    async def handle_change(self, event: ChangeEventOut) -> None:
        names = self.table_slots.get(event.table_name, ())
        if names:
            await self.refresh(*names)

    # --- lifecycle ---

    async def start(self) -> None:
        if self.running:
            return
        try:
            state = await self.strategy.prepare(self)
            await self.refresh()
            self._task = asyncio.create_task(self.strategy.run(self, state))
        except BaseException:
            await self.stop()
            raise

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


class RoomSynchronizer(Synchronizer):
    """部屋画面用: 部屋情報・参加者一覧・チャット"""

    table_slots = {
        "game_rooms": ("room",),
        "game_players": ("players",),
        "chat_messages": ("messages",),
    }

    def __init__(
        self,
        queries: Queries,
        room_id: str,
        strategy: Optional[SyncStrategy] = None,
        history_limit: int = CHAT_HISTORY_LIMIT,
    ):
        super().__init__(queries, strategy)
        self.room_id = room_id
        self.history_limit = history_limit
        self.add_slot("room", lambda: queries.rooms.get_room(room_id), None)
        self.add_slot("players", lambda: queries.players.get_players(room_id), [])
        self.add_slot("messages", lambda: queries.chat.get_messages(room_id, history_limit), [])

    def feeds(self) -> list[tuple[str, Optional[str]]]:
        return [(table, self.room_id) for table in self.table_slots]

    @property
    def room(self) -> Optional[RoomOut]:
        return self.slots["room"].value

    @property
    def players(self) -> list[PlayerOut]:
        return self.slots["players"].value

    @property
    def messages(self) -> list[ChatMessageOut]:
        return self.slots["messages"].value

    async def handle_change(self, event: ChangeEventOut) -> None:
        # チャットの INSERT は取り直さずに末尾へ足す
        if event.table_name == "chat_messages" and event.event == "INSERT":
            try:
                message = ChatMessageOut.model_validate(event.record)
            except ValidationError:
                logger.warning("malformed chat event %s, refetching transcript", event.id)
                await self.refresh("messages")
                return
            if self.append_message(message):
                self._emit({"messages"})
            return
        await super().handle_change(event)

    def append_message(self, message: ChatMessageOut) -> bool:
        """id で重複を除き、投稿順（seq）を保ったまま追加する。追加したら True"""
        current = self.messages
        if any(m.id == message.id for m in current):
            return False
        merged = sorted([*current, message], key=lambda m: m.seq)
        self.slots["messages"].apply_local(merged[-self.history_limit:])
        return True


class LobbySynchronizer(Synchronizer):
    """ロビー用: 募集中の部屋一覧（参加人数つき）"""

    table_slots = {
        "game_rooms": ("rooms",),
        "game_players": ("rooms",),
    }

    def __init__(self, queries: Queries, strategy: Optional[SyncStrategy] = None):
        super().__init__(queries, strategy)
        self.add_slot("rooms", self._fetch_rooms_with_counts, [])

    @property
    def rooms(self) -> list[RoomOut]:
        return self.slots["rooms"].value

    async def _fetch_rooms_with_counts(self) -> QueryResult[list[RoomOut]]:
        res = await self.queries.rooms.get_rooms()
        if res.error:
            return res

        counts = await asyncio.gather(*(self.queries.players.get_players(r.id) for r in res.data))
        rooms = [
            room.model_copy(update={"current_players": len(c.data) if c.ok else 0})
            for room, c in zip(res.data, counts)
        ]
        return QueryResult.success(rooms)
