# tests/test_auth_screens.py
import pytest
from sqlalchemy.orm import Session

from mafia_nights.client.screens import HOME, SET_USERNAME, PhoneLoginScreen
from mafia_nights.models.auth import OtpCode

pytestmark = pytest.mark.anyio


def _latest_code(db: Session, phone: str) -> str:
    otp = (
        db.query(OtpCode)
        .filter(OtpCode.phone == phone)
        .order_by(OtpCode.created_at.desc())
        .first()
    )
    return otp.code


async def test_login_routes_by_profile_state(make_app):
    """プロフィール設定済みならロビー、未設定ならプロフィール作成へ"""
    setup = make_app()
    user_id = (await setup.queries.auth.sign_up("ready@example.com", "secret123")).unwrap().user.id
    await setup.queries.profiles.update_profile(user_id, username="ready")
    await setup.queries.auth.sign_up("fresh@example.com", "secret123")

    ready = make_app()
    assert await ready.login_screen().sign_in("ready@example.com", "secret123")
    assert ready.recorder.routes[-1] == HOME
    assert ready.context.display_name == "ready"

    fresh = make_app()
    assert await fresh.login_screen().sign_in("fresh@example.com", "secret123")
    assert fresh.recorder.routes[-1] == SET_USERNAME


async def test_login_form_errors_do_not_hit_backend(make_app):
    app = make_app()
    screen = app.login_screen()

    assert not await screen.sign_in("", "")
    assert app.recorder.notices[-1] == ("Error", "Please fill in all fields")

    assert not await screen.sign_in("nobody@example.com", "secret123")
    assert app.recorder.notices[-1] == ("Login Failed", "Invalid login credentials")
    assert app.recorder.routes == []


async def test_register_mismatched_passwords(make_app):
    app = make_app()
    assert not await app.register_screen().register("a@example.com", "secret123", "secret124")
    assert app.recorder.notices[-1] == ("Error", "Passwords do not match")


async def test_oauth_returns_authorize_url(make_app):
    app = make_app()
    url = await app.login_screen().sign_in_with_oauth("apple")
    assert url.startswith("https://appleid.apple.com/")


async def test_phone_login_with_resend_countdown(make_app, db: Session):
    app = make_app()
    now = [1000.0]
    screen = PhoneLoginScreen(app.queries, clock=lambda: now[0])

    assert not await screen.verify("123456")
    assert app.recorder.notices[-1] == ("Error", "Please request a code first")

    assert await screen.send_otp("98765 43210")
    assert screen.phone == "+919876543210"
    assert screen.countdown == 60

    now[0] += 30
    assert not await screen.send_otp("98765 43210")
    assert app.recorder.notices[-1][0] == "Please wait"

    now[0] += 31
    assert screen.countdown == 0
    assert await screen.send_otp("98765 43210")

    assert not await screen.verify("12")
    assert app.recorder.notices[-1] == ("Error", "Please enter the 6-digit code")

    assert await screen.verify(_latest_code(db, "+919876543210"))
    assert app.context.user.phone == "+919876543210"
    assert app.recorder.routes[-1] == SET_USERNAME

    profile = await app.profile_setup_screen().save("phoney", "Phone User", "30")
    assert profile.gender == "prefer_not_to_say"
    assert profile.avatar_character == "char1"
    assert app.recorder.routes[-1] == HOME
