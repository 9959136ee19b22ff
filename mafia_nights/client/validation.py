# mafia_nights/client/validation.py
"""
入力チェック。どれもネットワークに出る前に呼び、失敗したら FormError を投げる。
メッセージはそのまま利用者に見せる文言。
"""
import re
from typing import Optional

from ..config import MAX_PLAYERS, MIN_PLAYERS
from .codes import is_valid_room_code, normalize_room_code

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
GENDERS = ("male", "female", "other", "prefer_not_to_say")
AVATARS = {
    "char1": "Warrior",
    "char2": "Mage",
    "char3": "Rogue",
    "char4": "Knight",
}
DEFAULT_COUNTRY_CODE = "91"


class FormError(ValueError):
    pass


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_username(username: str) -> bool:
    return 3 <= len(username) <= 20


def validate_credentials(email: str, password: str) -> str:
    if not email or not password:
        raise FormError("Please fill in all fields")
    email = email.strip()
    if not is_valid_email(email):
        raise FormError("Please enter a valid email address")
    return email


def validate_registration(email: str, password: str, confirm_password: str) -> str:
    if not email or not password or not confirm_password:
        raise FormError("Please fill in all fields")
    if password != confirm_password:
        raise FormError("Passwords do not match")
    if len(password) < 6:
        raise FormError("Password must be at least 6 characters")
    return validate_credentials(email, password)


def validate_username(username: str) -> str:
    username = username.strip()
    if not username:
        raise FormError("Please enter a username")
    if not is_valid_username(username):
        raise FormError("Username must be between 3 and 20 characters")
    return username


def validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise FormError("Please enter your name")
    return name


def validate_age(age: str) -> int:
    try:
        value = int(age)
    except (TypeError, ValueError):
        raise FormError("Please enter a valid age (13-100)")
    if value < 13 or value > 100:
        raise FormError("Please enter a valid age (13-100)")
    return value


def validate_gender(gender: str) -> str:
    if gender not in GENDERS:
        raise FormError("Please select a gender option")
    return gender


def validate_avatar(avatar: str) -> str:
    if avatar not in AVATARS:
        raise FormError("Please choose an avatar")
    return avatar


def format_phone_number(text: str) -> str:
    """数字以外を除去し、国番号がなければ +91 を付ける"""
    digits = re.sub(r"\D", "", text)
    if digits.startswith(DEFAULT_COUNTRY_CODE):
        return "+" + digits
    if len(digits) == 10:
        return "+" + DEFAULT_COUNTRY_CODE + digits
    return "+" + digits


def validate_phone(phone: str) -> str:
    if not phone:
        raise FormError("Please enter your phone number")
    formatted = format_phone_number(phone)
    if len(formatted) < 12:
        raise FormError("Please enter a valid phone number")
    return formatted


def validate_otp(token: str) -> str:
    token = (token or "").strip()
    if len(token) != 6 or not token.isdigit():
        raise FormError("Please enter the 6-digit code")
    return token


def validate_room_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise FormError("Please enter a room name")
    return name


def validate_max_players(value: Optional[str], default: int = 8) -> int:
    """空や数値以外なら default。範囲外はエラー"""
    try:
        n = int(value) if value not in (None, "") else default
    except ValueError:
        n = default
    if n < MIN_PLAYERS or n > MAX_PLAYERS:
        raise FormError(f"Max players must be between {MIN_PLAYERS} and {MAX_PLAYERS}")
    return n


def validate_room_code(code: str) -> str:
    code = normalize_room_code(code or "")
    if not code:
        raise FormError("Please enter a room code")
    if not is_valid_room_code(code):
        raise FormError("Room codes are 6 letters or digits")
    return code


def validate_chat_message(message: str) -> str:
    message = (message or "").strip()
    if not message:
        raise FormError("Message cannot be empty")
    return message
