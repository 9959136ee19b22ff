# mafia_nights/client/layout.py
"""
テーブルを囲む円周上に参加者を並べる。

席 0 が真上、そこから時計回りに等間隔。画面座標系（y は下向き）なので
角度 -π/2 が真上になる。
"""
import math
from typing import NamedTuple, Optional, Sequence

from ..schemas.player import PlayerOut
from .formatting import initials, role_color

RADIUS_RATIO = 0.75


class Point(NamedTuple):
    x: float
    y: float


class Seat(NamedTuple):
    player: PlayerOut
    position: Point
    initials: str
    color: str


def seat_position(index: int, total: int, width: float, height: float) -> Optional[Point]:
    """
    total 人中 index 番目の席の座標。

    描画領域のサイズがまだ分からない（0 以下）ときや total が 0 のときは
    None（= まだ描画しない）を返す。中心点を返すと全員が重なって見えるため。
    """
    if width <= 0 or height <= 0 or total <= 0:
        return None
    if not 0 <= index < total:
        raise IndexError(f"seat index {index} out of range for {total} seats")

    cx = width / 2
    cy = height / 2
    radius = min(cx, cy) * RADIUS_RATIO
    angle = (index / total) * 2 * math.pi - math.pi / 2
    return Point(cx + radius * math.cos(angle), cy + radius * math.sin(angle))


def seat_layout(players: Sequence[PlayerOut], width: float, height: float) -> Optional[list[Seat]]:
    """参加順の並びのまま円形に配置する。準備ができていなければ None"""
    if width <= 0 or height <= 0:
        return None

    total = len(players)
    seats = []
    for i, p in enumerate(players):
        seats.append(Seat(p, seat_position(i, total, width, height), initials(p.username), role_color(p.role)))
    return seats
