# mafia_nights/client/context.py
import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..schemas.auth import SessionOut, UserOut

if TYPE_CHECKING:
    from .queries import AuthQueries

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

Notifier = Callable[[str, str], None]
Navigator = Callable[[str], None]
AuthListener = Callable[[str, Optional[SessionOut]], None]


def _log_notice(title: str, message: str) -> None:
    logger.warning("[%s] %s", title, message)


def _log_route(route: str) -> None:
    logger.info("navigate -> %s", route)


class AppContext:
    """
    アプリ全体の状態（セッション・ユーザー・現在の部屋）を持つ。
    グローバルにせず、各 Facade / 画面に明示的に渡す。

    - 起動時: initialize() で保存済みセッションを検証する
    - サインアウト時: clear() で全部消す
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        navigator: Optional[Navigator] = None,
    ):
        self.session: Optional[SessionOut] = None
        self.username: Optional[str] = None
        self.current_room_id: Optional[str] = None
        self.notifier = notifier or _log_notice
        self.navigator = navigator or _log_route
        self._listeners: list[AuthListener] = []

    # --- identity ---

    @property
    def user(self) -> Optional[UserOut]:
        return self.session.user if self.session else None

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user.id if self.session else None

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def display_name(self) -> str:
        """チャット等で使う名前。プロフィール未設定ならメール/電話で代用"""
        if self.username:
            return self.username
        user = self.user
        if user is None:
            return "Player"
        return user.email or user.phone or "Player"

    # --- lifecycle ---

    async def initialize(self, auth: "AuthQueries", restored: Optional[SessionOut] = None) -> bool:
        """保存済みセッションがまだ有効か確かめる。無効なら捨てる。"""
        if restored is None:
            return False

        self.session = restored
        res = await auth.get_session()
        if res.error:
            logger.info("Stored session rejected: %s", res.error.message)
            self.session = None
            return False

        self.set_session(SessionOut(access_token=restored.access_token, user=res.data))
        return True

    def set_session(self, session: SessionOut) -> None:
        self.session = session
        self._emit(SIGNED_IN)

    def set_profile(self, username: Optional[str]) -> None:
        self.username = username

    def clear(self) -> None:
        self.session = None
        self.username = None
        self.current_room_id = None
        self._emit(SIGNED_OUT)

    # --- auth change notifications ---

    def on_auth_change(self, listener: AuthListener) -> Callable[[], None]:
        """リスナー登録。戻り値を呼ぶと解除される。"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.session)

    # --- UI sinks ---

    def notify(self, title: str, message: str) -> None:
        self.notifier(title, message)

    def navigate(self, route: str) -> None:
        self.navigator(route)
