# mafia_nights/client/codes.py
"""
部屋コード（参加用の短いトークン）。

36^6 ≒ 21.8 億通り。カジュアルな用途には十分だが推測困難性は保証しない。
一意性はバックエンド側（waiting の部屋の中で重複不可）だけが保証する。
"""
import math
import secrets
import string

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6
ROOM_CODE_SPACE = len(ROOM_CODE_ALPHABET) ** ROOM_CODE_LENGTH


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_room_code(code: str) -> str:
    return code.strip().upper()


def is_valid_room_code(code: str) -> bool:
    return len(code) == ROOM_CODE_LENGTH and all(c in ROOM_CODE_ALPHABET for c in code)


def collision_probability(n: int) -> float:
    """n 個生成したとき少なくとも1組が重複する確率（誕生日問題の近似）"""
    if n < 2:
        return 0.0
    return -math.expm1(-n * (n - 1) / (2 * ROOM_CODE_SPACE))


def expected_collisions(n: int) -> float:
    """n 個生成したときの重複ペア数の期待値"""
    return n * (n - 1) / (2 * ROOM_CODE_SPACE)
