# mafia_nights/client/screens.py
"""
画面ごとのコントローラ（描画は持たない）。

入力チェック → Facade 呼び出し → 結果に応じて通知 / 画面遷移、までを担当する。
入力エラーは通信前に FormError として弾き、サーバー側のエラーは
AppContext.notify() でユーザーに見せる。どちらも例外として外には出さない。
"""
import logging
import time
from collections.abc import Callable
from typing import Optional

from ..config import MAX_PLAYERS
from ..schemas.auth import OAuthProvider
from ..schemas.chat import ChatMessageOut
from ..schemas.profile import ProfileOut
from ..schemas.room import RoomOut
from .codes import generate_room_code
from .formatting import PHASE_ICONS, format_timestamp, role_label, truncate
from .layout import Seat, seat_layout
from .queries import Queries
from .result import BackendError, ErrorKind
from .sync import LobbySynchronizer, RoomSynchronizer, SyncStrategy
from .validation import (
    FormError,
    validate_age,
    validate_avatar,
    validate_chat_message,
    validate_credentials,
    validate_gender,
    validate_max_players,
    validate_name,
    validate_otp,
    validate_phone,
    validate_registration,
    validate_room_code,
    validate_room_name,
    validate_username,
)

logger = logging.getLogger(__name__)

# 画面遷移先
LOGIN = "auth/login"
SET_USERNAME = "auth/set-username"
HOME = "game/home"


def room_route(room_id: str) -> str:
    return f"game/{room_id}"


SETUP_HELP = (
    "The game database is not set up yet.\n\n"
    "Fix: create the game tables on the backend (start it with AUTO_CREATE_TABLES=1)."
)
OTP_RESEND_SEC = 60
ROOM_CODE_ATTEMPTS = 3
ROOM_NAME_DISPLAY_LEN = 24


class _Screen:
    def __init__(self, queries: Queries):
        self.q = queries
        self.ctx = queries.context
        self.loading = False

    def _form_error(self, e: FormError) -> None:
        self.ctx.notify("Error", str(e))

    def _backend_error(self, error: BackendError, title: str = "Error") -> None:
        if error.kind == ErrorKind.SETUP_MISSING:
            self.ctx.notify("Database Setup Required", SETUP_HELP)
        else:
            self.ctx.notify(title, error.message)

    async def _route_after_sign_in(self) -> None:
        """プロフィール未設定ならプロフィール作成へ"""
        res = await self.q.profiles.get_profile(self.ctx.user_id)
        if res.ok and res.data.username:
            self.ctx.set_profile(res.data.username)
            self.ctx.navigate(HOME)
        else:
            self.ctx.navigate(SET_USERNAME)


# -----------------------------
# 認証
# -----------------------------

class LoginScreen(_Screen):
    async def sign_in(self, email: str, password: str) -> bool:
        try:
            email = validate_credentials(email, password)
        except FormError as e:
            self._form_error(e)
            return False

        self.loading = True
        try:
            res = await self.q.auth.sign_in(email, password)
            if res.error:
                self._backend_error(res.error, "Login Failed")
                return False
            await self._route_after_sign_in()
            return True
        finally:
            self.loading = False

    async def sign_in_with_oauth(self, provider: OAuthProvider = "google") -> Optional[str]:
        """認可 URL を返す。ブラウザで開くのは呼び出し側"""
        res = await self.q.auth.sign_in_with_oauth(provider)
        if res.error:
            self._backend_error(res.error, f"{provider.capitalize()} Login Error")
            return None
        return res.data.url


class RegisterScreen(_Screen):
    async def register(self, email: str, password: str, confirm_password: str) -> bool:
        try:
            email = validate_registration(email, password, confirm_password)
        except FormError as e:
            self._form_error(e)
            return False

        self.loading = True
        try:
            res = await self.q.auth.sign_up(email, password)
            if res.error:
                self._backend_error(res.error, "Registration Failed")
                return False
            self.ctx.notify("Success", "Account created! Set up your profile to continue.")
            self.ctx.navigate(SET_USERNAME)
            return True
        finally:
            self.loading = False


class PhoneLoginScreen(_Screen):
    def __init__(self, queries: Queries, clock: Callable[[], float] = time.monotonic):
        super().__init__(queries)
        self._clock = clock
        self.phone: Optional[str] = None
        self.otp_sent = False
        self._resend_at = 0.0

    @property
    def countdown(self) -> int:
        """再送できるまでの秒数"""
        return max(0, int(self._resend_at - self._clock() + 0.999))

    async def send_otp(self, phone: str) -> bool:
        try:
            formatted = validate_phone(phone)
        except FormError as e:
            self._form_error(e)
            return False
        if self.otp_sent and self.countdown > 0:
            self.ctx.notify("Please wait", f"You can request a new code in {self.countdown}s")
            return False

        self.loading = True
        try:
            res = await self.q.auth.sign_in_with_phone(formatted)
            if res.error:
                self._backend_error(res.error)
                return False
            self.phone = formatted
            self.otp_sent = True
            self._resend_at = self._clock() + OTP_RESEND_SEC
            self.ctx.notify("OTP Sent", f"A 6-digit code has been sent to {formatted}")
            return True
        finally:
            self.loading = False

    async def verify(self, token: str) -> bool:
        if not self.phone:
            self.ctx.notify("Error", "Please request a code first")
            return False
        try:
            token = validate_otp(token)
        except FormError as e:
            self._form_error(e)
            return False

        self.loading = True
        try:
            res = await self.q.auth.verify_otp(self.phone, token)
            if res.error:
                self._backend_error(res.error)
                return False
            await self._route_after_sign_in()
            return True
        finally:
            self.loading = False


class ProfileSetupScreen(_Screen):
    async def save(
        self,
        username: str,
        name: str,
        age: str,
        gender: str = "prefer_not_to_say",
        avatar: str = "char1",
    ) -> Optional[ProfileOut]:
        try:
            username = validate_username(username)
            name = validate_name(name)
            age_num = validate_age(age)
            gender = validate_gender(gender)
            avatar = validate_avatar(avatar)
        except FormError as e:
            self._form_error(e)
            return None

        if not self.ctx.user_id:
            self.ctx.notify("Error", "User not found")
            return None

        self.loading = True
        try:
            res = await self.q.profiles.update_profile(
                self.ctx.user_id,
                username=username,
                name=name,
                age=age_num,
                gender=gender,
                avatar_character=avatar,
            )
            if res.error:
                self._backend_error(res.error)
                return None
            self.ctx.navigate(HOME)
            return res.data
        finally:
            self.loading = False


# -----------------------------
# ロビー
# -----------------------------

class HomeScreen(_Screen):
    """
    募集中の部屋一覧。`async with HomeScreen(...)` の間は一覧を同期し続ける。
    部屋を「見る」だけでは参加にならない。参加は join_room / join_by_code。
    """

    def __init__(self, queries: Queries, strategy: Optional[SyncStrategy] = None):
        super().__init__(queries)
        self.lobby = LobbySynchronizer(queries, strategy)
        self.profile: Optional[ProfileOut] = None

    @property
    def rooms(self) -> list[RoomOut]:
        return self.lobby.rooms

    def room_cards(self) -> list[tuple[str, str, str]]:
        """一覧表示用: (部屋名, コード, "参加人数/定員")"""
        return [
            (truncate(r.name, ROOM_NAME_DISPLAY_LEN), r.code, f"{r.current_players or 0}/{r.max_players}")
            for r in self.rooms
        ]

    async def __aenter__(self) -> "HomeScreen":
        await self.load()
        await self.lobby.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.lobby.stop()

    async def load(self) -> None:
        self.loading = True
        try:
            await self.check_setup()
            if self.ctx.user_id:
                res = await self.q.profiles.get_profile(self.ctx.user_id)
                if res.ok:
                    self.profile = res.data
                    self.ctx.set_profile(res.data.username)
        finally:
            self.loading = False

    async def check_setup(self) -> bool:
        """起動時診断。テーブル欠落を検出したら通知して False"""
        res = await self.q.diagnostics.check_game_setup()
        if res.ok and res.data.status == "error":
            self.ctx.notify(
                "Database Connection Error",
                "Connected to the backend, but game tables are missing: "
                + ", ".join(res.data.missing_tables),
            )
            return False
        if res.error and res.error.kind == ErrorKind.SETUP_MISSING:
            self._backend_error(res.error)
            return False
        # 診断手続き自体がない・通信できない場合は判定しない
        return True

    async def refresh(self) -> list[RoomOut]:
        await self.lobby.refresh()
        error = self.lobby.slots["rooms"].error
        if error and error.kind == ErrorKind.SETUP_MISSING:
            self.ctx.notify("System Error", "Game tables are missing. Please run database setup.")
        return self.rooms

    async def join_room(self, room_id: str) -> bool:
        if not self.ctx.user_id:
            self.ctx.notify("Error", "User not authenticated")
            return False

        res = await self.q.players.join_room(room_id, self.ctx.user_id, self.ctx.display_name)
        # 参加済みならそのまま入室
        if res.error and res.error.kind != ErrorKind.CONFLICT:
            self._backend_error(res.error, "Could not join room")
            return False

        self.ctx.current_room_id = room_id
        self.ctx.navigate(room_route(room_id))
        return True

    async def join_by_code(self, code: str) -> Optional[RoomOut]:
        try:
            code = validate_room_code(code)
        except FormError as e:
            self._form_error(e)
            return None

        self.loading = True
        try:
            res = await self.q.rooms.get_room_by_code(code)
            if res.error:
                if res.error.kind == ErrorKind.NOT_FOUND:
                    self.ctx.notify("Error", "Room not found or no longer available")
                else:
                    self._backend_error(res.error)
                return None
            if not await self.join_room(res.data.id):
                return None
            return res.data
        finally:
            self.loading = False

    async def sign_out(self) -> bool:
        res = await self.q.auth.sign_out()
        if res.error:
            self._backend_error(res.error)
            return False
        self.ctx.navigate(LOGIN)
        return True


class CreateRoomScreen(_Screen):
    async def create(self, name: str, max_players: Optional[str] = str(MAX_PLAYERS)) -> Optional[RoomOut]:
        try:
            name = validate_room_name(name)
            max_players_num = validate_max_players(max_players)
        except FormError as e:
            self._form_error(e)
            return None

        if not self.ctx.user_id:
            self.ctx.notify("Error", "User not authenticated")
            return None

        self.loading = True
        try:
            # コードの衝突はサーバーが 409 で教えてくれるので作り直す
            for _ in range(ROOM_CODE_ATTEMPTS):
                res = await self.q.rooms.create_room(name, generate_room_code(), max_players_num)
                if not (res.error and res.error.kind == ErrorKind.CONFLICT):
                    break
                logger.info("room code collision, retrying")

            if res.error:
                self._backend_error(res.error)
                return None
            self.ctx.navigate(room_route(res.data.id))
            return res.data
        finally:
            self.loading = False


# -----------------------------
# 部屋
# -----------------------------

class RoomScreen(_Screen):
    """
    部屋画面。`async with` の間だけ同期する（抜けると必ず停止）。
    入室しても自動で参加はしない。
    """

    def __init__(self, queries: Queries, room_id: str, strategy: Optional[SyncStrategy] = None):
        super().__init__(queries)
        self.room_id = room_id
        self.sync = RoomSynchronizer(queries, room_id, strategy)
        self.sending = False
        self.board_width = 0.0
        self.board_height = 0.0

    async def __aenter__(self) -> "RoomScreen":
        self.loading = True
        try:
            await self.sync.start()
        finally:
            self.loading = False
        self.ctx.current_room_id = self.room_id
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.sync.stop()
        if self.ctx.current_room_id == self.room_id:
            self.ctx.current_room_id = None

    # --- state ---

    @property
    def room(self) -> Optional[RoomOut]:
        return self.sync.room

    @property
    def room_gone(self) -> bool:
        error = self.sync.slots["room"].error
        return error is not None and error.kind == ErrorKind.NOT_FOUND

    @property
    def phase(self) -> str:
        return (self.room.phase if self.room else None) or "night"

    @property
    def phase_icon(self) -> str:
        return PHASE_ICONS[self.phase]

    @property
    def round_number(self) -> int:
        return (self.room.round_number if self.room else None) or 1

    @property
    def is_host(self) -> bool:
        return self.room is not None and self.room.host_id == self.ctx.user_id

    @property
    def is_member(self) -> bool:
        return any(p.user_id == self.ctx.user_id for p in self.sync.players)

    @property
    def messages(self) -> list[ChatMessageOut]:
        return self.sync.messages

    def transcript(self) -> list[tuple[str, str, str]]:
        return [(m.username, m.message, format_timestamp(m.created_at)) for m in self.messages]

    def roster(self) -> list[tuple[str, str, bool]]:
        """参加者一覧: (名前, 役職ラベル, 生存)。役職未設定ならラベルは空"""
        return [(p.username, role_label(p.role), p.is_alive) for p in self.sync.players]

    # --- seating ---

    def set_board_size(self, width: float, height: float) -> None:
        self.board_width = width
        self.board_height = height

    @property
    def seats(self) -> Optional[list[Seat]]:
        """盤面サイズが未確定なら None（描画しない）"""
        return seat_layout(self.sync.players, self.board_width, self.board_height)

    # --- actions ---

    async def send_message(self, text: str) -> bool:
        try:
            text = validate_chat_message(text)
        except FormError:
            # 空送信は何もしない
            return False
        if not self.ctx.user_id or self.room is None or self.sending:
            return False

        self.sending = True
        try:
            res = await self.q.chat.send_message(self.room.id, self.ctx.user_id, self.ctx.display_name, text)
            if res.error:
                self._backend_error(res.error)
                return False
            await self.sync.refresh("messages")
            return True
        finally:
            self.sending = False

    async def leave(self) -> bool:
        if not self.ctx.user_id:
            return False
        res = await self.q.players.leave_room(self.room_id, self.ctx.user_id)
        if res.error and res.error.kind != ErrorKind.NOT_FOUND:
            self._backend_error(res.error)
            return False
        self.ctx.navigate(HOME)
        return True
