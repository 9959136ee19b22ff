# tests/test_changes.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session


def _signup(client: TestClient, email: str):
    res = client.post("/api/auth/signup", json={"email": email, "password": "secret123"})
    assert res.status_code == 200
    body = res.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}


def _create_room(client: TestClient, headers: dict, code: str):
    res = client.post("/api/rooms", json={"name": f"Room {code}", "code": code}, headers=headers)
    assert res.status_code in (200, 201)
    return res.json()


def test_without_after_returns_only_cursor(client: TestClient, db: Session):
    """after 未指定は購読開始用。イベントは返さない"""
    _, headers = _signup(client, "host@example.com")
    _create_room(client, headers, "CUR001")

    res = client.get("/api/changes")
    assert res.status_code == 200
    body = res.json()
    assert body["events"] == []
    assert body["cursor"] >= 1


def test_events_after_cursor_in_order(client: TestClient, db: Session):
    user_id, headers = _signup(client, "host@example.com")
    start = client.get("/api/changes").json()["cursor"]

    room = _create_room(client, headers, "ORD001")
    client.post(f"/api/rooms/{room['id']}/players", json={"user_id": user_id, "username": "host"}, headers=headers)
    client.patch(f"/api/rooms/{room['id']}/status", json={"status": "playing"}, headers=headers)

    body = client.get("/api/changes", params={"after": start}).json()
    kinds = [(e["table_name"], e["event"]) for e in body["events"]]
    assert kinds == [
        ("game_rooms", "INSERT"),
        ("game_players", "INSERT"),
        ("game_rooms", "UPDATE"),
    ]
    assert body["events"][2]["record"]["status"] == "playing"
    assert body["cursor"] == body["events"][-1]["id"]

    # 追いついたら空
    again = client.get("/api/changes", params={"after": body["cursor"]}).json()
    assert again["events"] == []
    assert again["cursor"] == body["cursor"]


def test_filter_by_table_and_room(client: TestClient, db: Session):
    user_id, headers = _signup(client, "host@example.com")
    start = client.get("/api/changes").json()["cursor"]

    a = _create_room(client, headers, "ROOMA1")
    b = _create_room(client, headers, "ROOMB1")
    for room in (a, b):
        client.post(
            f"/api/rooms/{room['id']}/messages",
            json={"user_id": user_id, "username": "host", "message": f"hi {room['code']}"},
            headers=headers,
        )

    body = client.get(
        "/api/changes",
        params={"after": start, "table": "chat_messages", "room_id": a["id"]},
    ).json()
    assert len(body["events"]) == 1
    event = body["events"][0]
    assert event["room_id"] == a["id"]
    assert event["record"]["message"] == "hi ROOMA1"

    # フィルタで何も返らなくてもカーソルは先頭まで進む
    head = client.get("/api/changes").json()["cursor"]
    assert body["cursor"] == head


def test_paging_with_limit(client: TestClient, db: Session):
    _, headers = _signup(client, "host@example.com")
    start = client.get("/api/changes").json()["cursor"]
    for i in range(3):
        _create_room(client, headers, f"PAGE0{i}")

    first = client.get("/api/changes", params={"after": start, "limit": 2}).json()
    assert len(first["events"]) == 2

    rest = client.get("/api/changes", params={"after": first["cursor"], "limit": 2}).json()
    assert len(rest["events"]) == 1
    assert rest["events"][0]["record"]["code"] == "PAGE02"


def test_delete_events_carry_last_known_record(client: TestClient, db: Session):
    _, headers = _signup(client, "host@example.com")
    room = _create_room(client, headers, "DEL001")
    start = client.get("/api/changes").json()["cursor"]

    client.delete(f"/api/rooms/{room['id']}", headers=headers)

    events = client.get("/api/changes", params={"after": start}).json()["events"]
    assert [(e["table_name"], e["event"]) for e in events] == [("game_rooms", "DELETE")]
    assert events[0]["record"]["id"] == room["id"]
