#!/usr/bin/env python3
"""
起動中のバックエンドに対して、2人分のクライアントでロビー〜チャットを通す。

    python -m mafia_nights.main --port 8000
    python scripts/smoke_flow.py --base-url http://127.0.0.1:8000/api
"""
import argparse
import asyncio
import sys
import uuid

from mafia_nights.client import ErrorKind, MafiaApp, PollingStrategy, generate_room_code
from mafia_nights.config import API_BASE_URL


def print_case(title):
    print(f"\n=== {title} ===")


def expect(cond, message):
    if not cond:
        raise RuntimeError(message)


async def sign_up(app, label):
    email = f"{label}-{uuid.uuid4().hex[:8]}@example.com"
    session = (await app.queries.auth.sign_up(email, "smoke-pass")).unwrap()
    username = f"{label}{uuid.uuid4().hex[:4]}"
    (await app.queries.profiles.update_profile(session.user.id, username=username)).unwrap()
    return session.user.id, username


async def case_setup(app):
    print_case("setup")
    status = (await app.queries.diagnostics.check_game_setup()).unwrap()
    expect(status.status == "ok", f"tables missing: {status.missing_tables}")
    print("setup ok")


async def case_lobby(host, guest):
    print_case("create and join by code")
    await sign_up(host, "host")
    guest_id, guest_name = await sign_up(guest, "guest")

    room = (await host.queries.rooms.create_room("Smoke Room", generate_room_code(), 8)).unwrap()
    players = (await host.queries.players.get_players(room.id)).unwrap()
    expect(players == [], f"expected empty room, got {players}")

    found = (await guest.queries.rooms.get_room_by_code(room.code.lower())).unwrap()
    expect(found.id == room.id, "lookup by code returned another room")
    (await guest.queries.players.join_room(room.id, guest_id, guest_name)).unwrap()

    again = await guest.queries.players.join_room(room.id, guest_id, guest_name)
    expect(again.error is not None and again.error.kind == ErrorKind.CONFLICT, f"expected conflict, got {again}")

    players = (await host.queries.players.get_players(room.id)).unwrap()
    expect([p.username for p in players] == [guest_name], f"unexpected players {players}")
    print("lobby ok")
    return room, guest_id, guest_name


async def case_chat(host, guest, room, guest_id, guest_name):
    print_case("chat")
    async with host.room_screen(room.id) as screen:
        expect(not await screen.send_message("   "), "blank message was sent")
        (await guest.queries.chat.send_message(room.id, guest_id, guest_name, "first")).unwrap()
        expect(await screen.send_message("second"), "send_message failed")
        await screen.sync.refresh()
        texts = [m.message for m in screen.messages]
        expect(texts == ["first", "second"], f"unexpected transcript {texts}")
    print("chat ok")


async def case_cleanup(host, room):
    print_case("cleanup")
    (await host.queries.rooms.update_room_status(room.id, "finished")).unwrap()
    gone = await host.queries.rooms.get_room_by_code(room.code)
    expect(gone.error is not None, "finished room is still listed by code")
    (await host.queries.rooms.delete_room(room.id)).unwrap()
    print("cleanup ok")


async def run(base_url):
    strategy = PollingStrategy(interval=3600)
    async with MafiaApp(base_url, strategy=strategy) as host, MafiaApp(base_url, strategy=strategy) as guest:
        await case_setup(host)
        room, guest_id, guest_name = await case_lobby(host, guest)
        await case_chat(host, guest, room, guest_id, guest_name)
        await case_cleanup(host, room)


def main():
    parser = argparse.ArgumentParser(description="Mafia Nights smoke flow")
    parser.add_argument("--base-url", type=str, default=API_BASE_URL, help="Backend API base URL")
    args = parser.parse_args()

    asyncio.run(run(args.base_url))
    print("\nALL OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
