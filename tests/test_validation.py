# tests/test_validation.py
import pytest

from mafia_nights.client.validation import (
    FormError,
    format_phone_number,
    validate_age,
    validate_chat_message,
    validate_credentials,
    validate_max_players,
    validate_otp,
    validate_phone,
    validate_registration,
    validate_room_code,
    validate_username,
)


def test_credentials():
    assert validate_credentials(" a@b.co ", "pw") == "a@b.co"
    with pytest.raises(FormError, match="Please fill in all fields"):
        validate_credentials("", "pw")
    with pytest.raises(FormError, match="valid email"):
        validate_credentials("not-an-email", "pw")


def test_registration():
    assert validate_registration("a@b.co", "secret1", "secret1") == "a@b.co"
    with pytest.raises(FormError, match="Passwords do not match"):
        validate_registration("a@b.co", "secret1", "secret2")
    with pytest.raises(FormError, match="at least 6 characters"):
        validate_registration("a@b.co", "short", "short")


def test_username_length():
    assert validate_username("  bob  ") == "bob"
    with pytest.raises(FormError):
        validate_username("ab")
    with pytest.raises(FormError):
        validate_username("x" * 21)


@pytest.mark.parametrize("age", ["abc", "", "12", "101"])
def test_invalid_age(age):
    with pytest.raises(FormError):
        validate_age(age)


def test_valid_age():
    assert validate_age("13") == 13
    assert validate_age("100") == 100


def test_phone_formatting():
    assert format_phone_number("98765 43210") == "+919876543210"
    assert format_phone_number("+91 98765-43210") == "+919876543210"
    assert format_phone_number("+1 415 555 0100") == "+14155550100"
    assert validate_phone("9876543210") == "+919876543210"
    with pytest.raises(FormError):
        validate_phone("12345")


def test_otp():
    assert validate_otp(" 123456 ") == "123456"
    with pytest.raises(FormError):
        validate_otp("12345")
    with pytest.raises(FormError):
        validate_otp("12a456")


def test_max_players_defaults_and_range():
    assert validate_max_players("") == 8
    assert validate_max_players(None) == 8
    assert validate_max_players("lots") == 8
    assert validate_max_players("20") == 20
    with pytest.raises(FormError):
        validate_max_players("2")
    with pytest.raises(FormError):
        validate_max_players("21")


def test_room_code():
    assert validate_room_code(" abc123 ") == "ABC123"
    with pytest.raises(FormError, match="Please enter a room code"):
        validate_room_code("   ")
    with pytest.raises(FormError):
        validate_room_code("ABC")


def test_chat_message():
    assert validate_chat_message("  hi  ") == "hi"
    with pytest.raises(FormError, match="Message cannot be empty"):
        validate_chat_message("   ")
