# tests/test_profiles.py

from starlette.testclient import TestClient
from sqlalchemy.orm import Session

from mafia_nights.models.profile import Profile
from mafia_nights.schemas.profile import ProfileOut


def _signup(client: TestClient, email: str):
    res = client.post("/api/auth/signup", json={"email": email, "password": "secret123"})
    assert res.status_code == 200
    body = res.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}


def test_update_and_get_profile(client: TestClient, db: Session):
    """プロフィールを更新して、GET で取得できること"""
    user_id, headers = _signup(client, "alice@example.com")

    payload = {
        "username": "alice",
        "name": "Alice Liddell",
        "age": 24,
        "gender": "female",
        "avatar_character": "char2",
    }
    res = client.patch(f"/api/profiles/{user_id}", json=payload, headers=headers)
    assert res.status_code == 200

    body = client.get(f"/api/profiles/{user_id}").json()
    assert body["id"] == user_id
    assert body["username"] == "alice"
    assert body["age"] == 24
    assert body["avatar_character"] == "char2"


def test_partial_update_keeps_other_fields(client: TestClient, db: Session):
    user_id, headers = _signup(client, "carol@example.com")
    client.patch(f"/api/profiles/{user_id}", json={"username": "carol", "age": 30}, headers=headers)

    res = client.patch(f"/api/profiles/{user_id}", json={"age": 31}, headers=headers)
    assert res.status_code == 200
    assert res.json()["username"] == "carol"
    assert res.json()["age"] == 31


def test_cannot_update_another_users_profile(client: TestClient, db: Session):
    alice_id, _ = _signup(client, "alice@example.com")
    _, bob_headers = _signup(client, "bob@example.com")

    res = client.patch(f"/api/profiles/{alice_id}", json={"username": "mallory"}, headers=bob_headers)
    assert res.status_code == 403


def test_profile_validation(client: TestClient, db: Session):
    """ユーザー名 3〜20 文字、年齢 13〜100 の範囲外は 422"""
    user_id, headers = _signup(client, "dave@example.com")

    assert client.patch(f"/api/profiles/{user_id}", json={"username": "ab"}, headers=headers).status_code == 422
    assert client.patch(f"/api/profiles/{user_id}", json={"age": 12}, headers=headers).status_code == 422
    assert client.patch(f"/api/profiles/{user_id}", json={"gender": "robot"}, headers=headers).status_code == 422


def test_get_nonexistent_profile_returns_404(client: TestClient, db: Session):
    res = client.get("/api/profiles/nonexistent-id-123")
    assert res.status_code == 404


def test_profile_out_reads_orm_row(client: TestClient, db: Session):
    """ProfileOut は DB の行からそのまま作れる"""
    user_id, _ = _signup(client, "orm@example.com")
    row = db.query(Profile).filter(Profile.id == user_id).one()
    row.username = "ormuser"
    row.age = 40

    out = ProfileOut.model_validate(row)
    assert out.id == user_id
    assert out.username == "ormuser"
    assert out.age == 40
    assert out.gender == "prefer_not_to_say"
