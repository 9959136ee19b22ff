# tests/conftest.py
import os

# テスト用 DB（アプリ本体の import より前に設定する）
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_mafia_nights.db")

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from mafia_nights.db import Base, engine, SessionLocal  # noqa: E402
from mafia_nights.main import app  # noqa: E402
from mafia_nights.client import MafiaApp, PollingStrategy  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client() -> TestClient:
    """
    通常の FastAPI app をそのまま使う TestClient。
    DI の上書きは行わない。
    """
    with TestClient(app) as c:
        yield c


class Recorder:
    """通知と画面遷移を記録する（UI の代わり）"""

    def __init__(self):
        self.notices: list[tuple[str, str]] = []
        self.routes: list[str] = []

    def notify(self, title: str, message: str) -> None:
        self.notices.append((title, message))

    def navigate(self, route: str) -> None:
        self.routes.append(route)


@pytest.fixture
async def make_app(db: Session):
    """
    ASGI アプリに直結したクライアントを作るファクトリ。
    既定ではポーリング間隔を長くして、バックグラウンド更新が走らないようにする。
    """
    apps: list[MafiaApp] = []

    def _make(strategy=None, transport=None) -> MafiaApp:
        recorder = Recorder()
        mafia = MafiaApp(
            "http://testserver/api",
            transport=transport or httpx.ASGITransport(app=app),
            notifier=recorder.notify,
            navigator=recorder.navigate,
            strategy=strategy or PollingStrategy(interval=3600),
        )
        mafia.recorder = recorder
        apps.append(mafia)
        return mafia

    yield _make

    for mafia in apps:
        await mafia.close()
