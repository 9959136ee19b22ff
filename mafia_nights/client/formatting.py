# mafia_nights/client/formatting.py
from datetime import datetime, timedelta, timezone
from typing import Optional

ROLE_COLORS = {
    "mafia": "#ff0000",
    "doctor": "#00ff00",
    "police": "#0088ff",
    "citizen": "#888888",
}
DEFAULT_ROLE_COLOR = "#888888"

ROLE_ICONS = {
    "mafia": "👺",
    "police": "👮",
    "doctor": "🩺",
}

PHASE_ICONS = {"night": "🌙", "day": "☀️"}


def _to_local(value: datetime) -> datetime:
    # サーバーは naive UTC を返す
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone()


def format_timestamp(value: datetime, now: Optional[datetime] = None) -> str:
    """今日なら時刻、昨日なら Yesterday、それ以前は 'Jan 5' 形式"""
    local = _to_local(value)
    now = _to_local(now) if now is not None else datetime.now().astimezone()

    if local.date() == now.date():
        return local.strftime("%H:%M")
    if local.date() == (now - timedelta(days=1)).date():
        return "Yesterday"
    return f"{local.strftime('%b')} {local.day}"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def initials(name: str) -> str:
    return name[:2].upper()


def role_color(role: Optional[str]) -> str:
    return ROLE_COLORS.get((role or "citizen").lower(), DEFAULT_ROLE_COLOR)


def role_label(role: Optional[str]) -> str:
    """'👺 mafia' のような表示用ラベル。役職未設定なら空文字"""
    if not role:
        return ""
    key = role.lower()
    icon = ROLE_ICONS.get(key)
    return f"{icon} {key}" if icon else key
