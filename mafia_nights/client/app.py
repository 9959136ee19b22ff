# mafia_nights/client/app.py
from typing import Optional

import httpx

from ..config import API_BASE_URL
from ..schemas.auth import SessionOut
from . import screens
from .backend import BackendClient
from .context import SIGNED_OUT, AppContext, Navigator, Notifier
from .queries import Queries
from .sync import SyncStrategy


class MafiaApp:
    """
    クライアントのルート。接続・コンテキスト・Facade をまとめて持ち、
    `async with` を抜けると接続を閉じる。

    サインイン/アウトの通知で signed_in（認証画面かゲーム画面か）を切り替える。
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        notifier: Optional[Notifier] = None,
        navigator: Optional[Navigator] = None,
        strategy: Optional[SyncStrategy] = None,
    ):
        self.backend = BackendClient(base_url, transport=transport)
        self.context = AppContext(notifier=notifier, navigator=navigator)
        self.queries = Queries(self.backend, self.context)
        self.strategy = strategy
        self.signed_in = False
        self._unsubscribe = self.context.on_auth_change(self._on_auth_change)

    def _on_auth_change(self, event: str, session: Optional[SessionOut]) -> None:
        # ルートの表示切り替え用（画面遷移そのものは各画面が行う）
        self.signed_in = event != SIGNED_OUT and session is not None

    async def start(self, restored: Optional[SessionOut] = None) -> bool:
        """保存済みセッションが有効ならロビーから、無効ならログイン画面から"""
        if await self.context.initialize(self.queries.auth, restored):
            self.context.navigate(screens.HOME)
            return True
        self.context.navigate(screens.LOGIN)
        return False

    async def close(self) -> None:
        self._unsubscribe()
        await self.backend.aclose()

    async def __aenter__(self) -> "MafiaApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- screens ---

    def login_screen(self) -> screens.LoginScreen:
        return screens.LoginScreen(self.queries)

    def register_screen(self) -> screens.RegisterScreen:
        return screens.RegisterScreen(self.queries)

    def phone_login_screen(self) -> screens.PhoneLoginScreen:
        return screens.PhoneLoginScreen(self.queries)

    def profile_setup_screen(self) -> screens.ProfileSetupScreen:
        return screens.ProfileSetupScreen(self.queries)

    def home_screen(self) -> screens.HomeScreen:
        return screens.HomeScreen(self.queries, self.strategy)

    def create_room_screen(self) -> screens.CreateRoomScreen:
        return screens.CreateRoomScreen(self.queries)

    def room_screen(self, room_id: str) -> screens.RoomScreen:
        return screens.RoomScreen(self.queries, room_id, self.strategy)
