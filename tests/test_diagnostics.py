# tests/test_diagnostics.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mafia_nights.db import engine
from mafia_nights.models.room import ChatMessage


def _signup(client: TestClient, email: str = "host@example.com"):
    res = client.post("/api/auth/signup", json={"email": email, "password": "secret123"})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def test_root(client: TestClient, db: Session):
    res = client.get("/")
    assert res.status_code == 200
    assert "message" in res.json()


def test_check_game_setup_ok(client: TestClient, db: Session):
    res = client.post("/api/rpc/check_game_setup")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "missing_tables": []}


def test_missing_table_is_reported_as_setup_missing(client: TestClient, db: Session):
    """テーブル欠落は 503 + code=setup_missing で、診断にも出る"""
    headers = _signup(client)
    room = client.post("/api/rooms", json={"name": "R", "code": "MISS01"}, headers=headers).json()

    ChatMessage.__table__.drop(bind=engine)

    res = client.get(f"/api/rooms/{room['id']}/messages")
    assert res.status_code == 503
    assert res.json()["code"] == "setup_missing"
    assert "chat_messages" in res.json()["detail"]

    diag = client.post("/api/rpc/check_game_setup").json()
    assert diag["status"] == "error"
    assert diag["missing_tables"] == ["chat_messages"]
