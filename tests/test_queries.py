# tests/test_queries.py
import httpx
import pytest

from mafia_nights.client import AppContext, BackendClient, ErrorKind, QueryError, Queries
from mafia_nights.client.context import SIGNED_IN, SIGNED_OUT
from mafia_nights.db import engine
from mafia_nights.models.room import ChatMessage

pytestmark = pytest.mark.anyio


def _offline_queries(handler) -> Queries:
    backend = BackendClient("http://testserver/api", transport=httpx.MockTransport(handler))
    return Queries(backend, AppContext())


# -----------------------------
# 認証・コンテキスト
# -----------------------------

async def test_sign_up_populates_context_and_notifies(make_app):
    app = make_app()
    events = []
    app.context.on_auth_change(lambda event, session: events.append(event))

    res = await app.queries.auth.sign_up("alice@example.com", "secret123")
    assert res.ok
    assert app.context.is_authenticated
    assert app.context.user_id == res.data.user.id
    assert app.context.display_name == "alice@example.com"
    assert app.signed_in
    assert events == [SIGNED_IN]

    out = await app.queries.auth.sign_out()
    assert out.ok
    assert not app.context.is_authenticated
    assert not app.signed_in
    assert events == [SIGNED_IN, SIGNED_OUT]


async def test_wrong_password_is_an_error_value(make_app):
    app = make_app()
    await app.queries.auth.sign_up("bob@example.com", "secret123")
    await app.queries.auth.sign_out()

    res = await app.queries.auth.sign_in("bob@example.com", "nope-nope")
    assert res.data is None
    assert res.error.kind == ErrorKind.UNAUTHORIZED
    assert not app.context.is_authenticated


async def test_get_session_without_token_skips_network():
    def handler(request):
        raise AssertionError("no request expected")

    queries = _offline_queries(handler)
    res = await queries.auth.get_session()
    assert res.error.kind == ErrorKind.UNAUTHORIZED
    await queries.backend.aclose()


async def test_start_with_stored_session(make_app):
    first = make_app()
    session = (await first.queries.auth.sign_up("carol@example.com", "secret123")).unwrap()

    restored = make_app()
    assert await restored.start(session) is True
    assert restored.context.user_id == session.user.id
    assert restored.recorder.routes == ["game/home"]

    await first.queries.auth.sign_out()

    stale = make_app()
    assert await stale.start(session) is False
    assert not stale.context.is_authenticated
    assert stale.recorder.routes == ["auth/login"]


async def test_update_profile_sets_display_name(make_app):
    app = make_app()
    user_id = (await app.queries.auth.sign_up("dave@example.com", "secret123")).unwrap().user.id

    res = await app.queries.profiles.update_profile(user_id, username="dave", age=40)
    assert res.ok
    assert res.data.username == "dave"
    assert res.data.name is None
    assert app.context.display_name == "dave"


# -----------------------------
# エラーの種類
# -----------------------------

async def test_error_kinds_from_backend(make_app):
    app = make_app()
    user_id = (await app.queries.auth.sign_up("erin@example.com", "secret123")).unwrap().user.id

    missing = await app.queries.rooms.get_room("no-such-room")
    assert missing.error.kind == ErrorKind.NOT_FOUND
    assert missing.error.status_code == 404

    room = (await app.queries.rooms.create_room("Test Room", "ERR001")).unwrap()
    dup = await app.queries.rooms.create_room("Again", "ERR001")
    assert dup.error.kind == ErrorKind.CONFLICT

    bad = await app.queries.rooms.create_room("Tiny", "ERR002", max_players=2)
    assert bad.error.kind == ErrorKind.INVALID_REQUEST

    other = await app.queries.players.join_room(room.id, "someone-else", "x")
    assert other.error.kind == ErrorKind.FORBIDDEN

    assert (await app.queries.players.join_room(room.id, user_id, "erin")).ok
    again = await app.queries.players.join_room(room.id, user_id, "erin")
    assert again.error.kind == ErrorKind.CONFLICT

    with pytest.raises(QueryError) as exc_info:
        missing.unwrap()
    assert exc_info.value.error.kind == ErrorKind.NOT_FOUND


async def test_missing_table_maps_to_setup_missing(make_app):
    app = make_app()
    await app.queries.auth.sign_up("frank@example.com", "secret123")
    room = (await app.queries.rooms.create_room("Test Room", "SET001")).unwrap()

    ChatMessage.__table__.drop(bind=engine)

    res = await app.queries.chat.get_messages(room.id)
    assert res.error.kind == ErrorKind.SETUP_MISSING

    diag = (await app.queries.diagnostics.check_game_setup()).unwrap()
    assert diag.status == "error"
    assert diag.missing_tables == ["chat_messages"]


async def test_transport_failure_is_an_error_value():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    queries = _offline_queries(handler)
    res = await queries.rooms.get_rooms()
    assert res.error.kind == ErrorKind.TRANSPORT
    assert "connection refused" in res.error.message
    await queries.backend.aclose()


async def test_unexpected_body_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    queries = _offline_queries(handler)
    res = await queries.rooms.get_room("room-1")
    assert res.error.kind == ErrorKind.INVALID_RESPONSE
    await queries.backend.aclose()


async def test_server_error_without_json_body():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    queries = _offline_queries(handler)
    res = await queries.rooms.get_rooms()
    assert res.error.kind == ErrorKind.REMOTE
    assert res.error.status_code == 502
    await queries.backend.aclose()


async def test_changes_poll_through_facade(make_app):
    app = make_app()
    await app.queries.auth.sign_up("gina@example.com", "secret123")
    head = (await app.queries.changes.poll("game_rooms")).unwrap()

    room = (await app.queries.rooms.create_room("Test Room", "CHG001")).unwrap()
    feed = (await app.queries.changes.poll("game_rooms", after=head.cursor)).unwrap()
    assert [e.event for e in feed.events] == ["INSERT"]
    assert feed.events[0].record["id"] == room.id
