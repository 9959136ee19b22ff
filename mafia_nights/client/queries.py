# mafia_nights/client/queries.py
"""
バックエンド呼び出しの Facade。

各メソッドはリモート操作を1回だけ行い、QueryResult を返す（例外は投げない）。
レスポンスは mafia_nights.schemas の型で検証してから返すので、
呼び出し側が生の dict やエラーメッセージ文字列を見ることはない。
"""
from typing import Optional

from ..config import CHAT_HISTORY_LIMIT, DEFAULT_MAX_PLAYERS
from ..schemas.auth import OAuthProvider, OAuthRedirectOut, SessionOut, UserOut
from ..schemas.change import ChangeFeedOut
from ..schemas.chat import ChatMessageOut
from ..schemas.diagnostics import SetupStatusOut
from ..schemas.player import PlayerOut
from ..schemas.profile import ProfileOut
from ..schemas.room import RoomOut
from .backend import BackendClient
from .context import AppContext
from .result import BackendError, ErrorKind, QueryResult


class _Namespace:
    def __init__(self, backend: BackendClient, context: AppContext):
        self._backend = backend
        self._ctx = context

    async def _call(self, method: str, path: str, response_type=None, **kwargs) -> QueryResult:
        return await self._backend.call(
            method, path, response_type, token=self._ctx.access_token, **kwargs
        )


# -----------------------------
# 認証
# -----------------------------

class AuthQueries(_Namespace):
    def _start_session(self, res: QueryResult[SessionOut]) -> QueryResult[SessionOut]:
        if res.ok:
            self._ctx.set_session(res.data)
        return res

    async def sign_up(self, email: str, password: str) -> QueryResult[SessionOut]:
        res = await self._call("POST", "/auth/signup", SessionOut, json={"email": email, "password": password})
        return self._start_session(res)

    async def sign_in(self, email: str, password: str) -> QueryResult[SessionOut]:
        res = await self._call("POST", "/auth/token", SessionOut, json={"email": email, "password": password})
        return self._start_session(res)

    async def sign_in_with_oauth(
        self, provider: OAuthProvider, redirect_to: Optional[str] = None
    ) -> QueryResult[OAuthRedirectOut]:
        """プロバイダの認可 URL を返すだけ。遷移とコールバック処理は呼び出し側。"""
        return await self._call(
            "GET",
            "/auth/authorize",
            OAuthRedirectOut,
            params={"provider": provider, "redirect_to": redirect_to},
        )

    async def sign_in_with_phone(self, phone: str) -> QueryResult[None]:
        return await self._call("POST", "/auth/otp", json={"phone": phone})

    async def verify_otp(self, phone: str, token: str) -> QueryResult[SessionOut]:
        res = await self._call(
            "POST", "/auth/verify", SessionOut, json={"phone": phone, "token": token, "type": "sms"}
        )
        return self._start_session(res)

    async def get_session(self) -> QueryResult[UserOut]:
        if not self._ctx.access_token:
            return QueryResult.failure(BackendError(kind=ErrorKind.UNAUTHORIZED, message="No active session"))
        return await self._call("GET", "/auth/user", UserOut)

    async def sign_out(self) -> QueryResult[None]:
        res = await self._call("POST", "/auth/logout")
        # 既にサーバー側で失効していても手元のセッションは消す
        if res.ok or res.error.kind == ErrorKind.UNAUTHORIZED:
            self._ctx.clear()
            return QueryResult.success(None)
        return res


# -----------------------------
# プロフィール
# -----------------------------

class ProfileQueries(_Namespace):
    async def get_profile(self, user_id: str) -> QueryResult[ProfileOut]:
        return await self._call("GET", f"/profiles/{user_id}", ProfileOut)

    async def update_profile(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        name: Optional[str] = None,
        age: Optional[int] = None,
        gender: Optional[str] = None,
        avatar_character: Optional[str] = None,
    ) -> QueryResult[ProfileOut]:
        updates = {
            "username": username,
            "name": name,
            "age": age,
            "gender": gender,
            "avatar_character": avatar_character,
        }
        body = {k: v for k, v in updates.items() if v is not None}
        res = await self._call("PATCH", f"/profiles/{user_id}", ProfileOut, json=body)
        if res.ok and user_id == self._ctx.user_id:
            self._ctx.set_profile(res.data.username)
        return res


# -----------------------------
# 部屋
# -----------------------------

class RoomQueries(_Namespace):
    async def get_rooms(self, status: Optional[str] = "waiting") -> QueryResult[list[RoomOut]]:
        return await self._call("GET", "/rooms", list[RoomOut], params={"status": status})

    async def get_room(self, room_id: str) -> QueryResult[RoomOut]:
        return await self._call("GET", f"/rooms/{room_id}", RoomOut)

    async def get_room_by_code(self, code: str) -> QueryResult[RoomOut]:
        return await self._call("GET", f"/rooms/by-code/{code.strip().upper()}", RoomOut)

    async def create_room(
        self, name: str, code: str, max_players: int = DEFAULT_MAX_PLAYERS
    ) -> QueryResult[RoomOut]:
        """ホストは現在のセッションのユーザー"""
        return await self._call(
            "POST", "/rooms", RoomOut, json={"name": name, "code": code, "max_players": max_players}
        )

    async def update_room_status(self, room_id: str, status: str) -> QueryResult[RoomOut]:
        return await self._call("PATCH", f"/rooms/{room_id}/status", RoomOut, json={"status": status})

    async def delete_room(self, room_id: str) -> QueryResult[None]:
        return await self._call("DELETE", f"/rooms/{room_id}")


# -----------------------------
# 参加者
# -----------------------------

class PlayerQueries(_Namespace):
    async def get_players(self, room_id: str) -> QueryResult[list[PlayerOut]]:
        return await self._call("GET", f"/rooms/{room_id}/players", list[PlayerOut])

    async def join_room(self, room_id: str, user_id: str, username: str) -> QueryResult[PlayerOut]:
        return await self._call(
            "POST", f"/rooms/{room_id}/players", PlayerOut, json={"user_id": user_id, "username": username}
        )

    async def leave_room(self, room_id: str, user_id: str) -> QueryResult[None]:
        return await self._call("DELETE", f"/rooms/{room_id}/players/{user_id}")

    async def update_player(
        self,
        room_id: str,
        user_id: str,
        *,
        role: Optional[str] = None,
        is_alive: Optional[bool] = None,
    ) -> QueryResult[PlayerOut]:
        body = {k: v for k, v in {"role": role, "is_alive": is_alive}.items() if v is not None}
        return await self._call("PATCH", f"/rooms/{room_id}/players/{user_id}", PlayerOut, json=body)


# -----------------------------
# チャット
# -----------------------------

class ChatQueries(_Namespace):
    async def get_messages(
        self, room_id: str, limit: int = CHAT_HISTORY_LIMIT
    ) -> QueryResult[list[ChatMessageOut]]:
        """最新 limit 件を古い順で"""
        return await self._call(
            "GET", f"/rooms/{room_id}/messages", list[ChatMessageOut], params={"limit": limit}
        )

    async def send_message(
        self, room_id: str, user_id: str, username: str, message: str
    ) -> QueryResult[ChatMessageOut]:
        return await self._call(
            "POST",
            f"/rooms/{room_id}/messages",
            ChatMessageOut,
            json={"user_id": user_id, "username": username, "message": message},
        )


# -----------------------------
# 変更フィード・診断
# -----------------------------

class ChangeQueries(_Namespace):
    async def poll(
        self,
        table: str,
        room_id: Optional[str] = None,
        after: Optional[int] = None,
        limit: int = 100,
    ) -> QueryResult[ChangeFeedOut]:
        return await self._call(
            "GET",
            "/changes",
            ChangeFeedOut,
            params={"table": table, "room_id": room_id, "after": after, "limit": limit},
        )


class DiagnosticsQueries(_Namespace):
    async def check_game_setup(self) -> QueryResult[SetupStatusOut]:
        return await self._call("POST", "/rpc/check_game_setup", SetupStatusOut)


class Queries:
    """画面・同期処理はこのオブジェクト経由でのみバックエンドに触る"""

    def __init__(self, backend: BackendClient, context: AppContext):
        self.backend = backend
        self.context = context
        self.auth = AuthQueries(backend, context)
        self.profiles = ProfileQueries(backend, context)
        self.rooms = RoomQueries(backend, context)
        self.players = PlayerQueries(backend, context)
        self.chat = ChatQueries(backend, context)
        self.changes = ChangeQueries(backend, context)
        self.diagnostics = DiagnosticsQueries(backend, context)
