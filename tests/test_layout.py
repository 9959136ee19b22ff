# tests/test_layout.py
import math
from datetime import datetime

import pytest

from mafia_nights.client.layout import RADIUS_RATIO, seat_layout, seat_position
from mafia_nights.schemas.player import PlayerOut


def _player(i: int, role=None) -> PlayerOut:
    return PlayerOut(
        id=f"p{i}",
        room_id="room",
        user_id=f"u{i}",
        username=f"player{i}",
        role=role,
        is_alive=True,
        joined_at=datetime(2024, 1, 1, 12, 0, i),
    )


@pytest.mark.parametrize("total", [1, 3, 7, 20])
@pytest.mark.parametrize("size", [(400, 400), (800, 300), (120.5, 900)])
def test_seats_lie_on_circle(total, size):
    """全席が中心から同じ距離 min(w,h)/2 * 0.75 にある"""
    w, h = size
    radius = min(w, h) / 2 * RADIUS_RATIO
    for i in range(total):
        p = seat_position(i, total, w, h)
        assert math.isclose(math.hypot(p.x - w / 2, p.y - h / 2), radius, rel_tol=1e-9)


def test_first_seat_is_top_center_and_clockwise():
    p0 = seat_position(0, 4, 400, 400)
    assert math.isclose(p0.x, 200, abs_tol=1e-9)
    assert math.isclose(p0.y, 50, abs_tol=1e-9)

    # 画面座標（y 下向き）で時計回り = 2 番目は右
    p1 = seat_position(1, 4, 400, 400)
    assert math.isclose(p1.x, 350, abs_tol=1e-9)
    assert math.isclose(p1.y, 200, abs_tol=1e-9)


@pytest.mark.parametrize("total", [2, 5, 12])
def test_adjacent_seats_are_evenly_spaced(total):
    """隣り合う席の中心角はすべて 2π/n"""
    w = h = 500
    points = [seat_position(i, total, w, h) for i in range(total)]
    angles = [math.atan2(p.y - h / 2, p.x - w / 2) for p in points]
    for a, b in zip(angles, angles[1:] + angles[:1]):
        step = (b - a) % (2 * math.pi)
        assert math.isclose(step, 2 * math.pi / total, rel_tol=1e-9)


@pytest.mark.parametrize("w,h", [(0, 400), (400, 0), (-1, 300)])
def test_unknown_board_size_yields_nothing(w, h):
    assert seat_position(0, 4, w, h) is None
    assert seat_layout([_player(0)], w, h) is None


def test_empty_room():
    assert seat_position(0, 0, 400, 400) is None
    assert seat_layout([], 400, 400) == []


def test_out_of_range_index():
    with pytest.raises(IndexError):
        seat_position(4, 4, 400, 400)


def test_layout_keeps_join_order_and_role_colors():
    players = [_player(0, "mafia"), _player(1), _player(2, "doctor")]
    seats = seat_layout(players, 300, 300)

    assert [s.player.id for s in seats] == ["p0", "p1", "p2"]
    assert [s.initials for s in seats] == ["PL", "PL", "PL"]
    assert seats[0].color == "#ff0000"
    assert seats[1].color == "#888888"
    assert seats[2].color == "#00ff00"
    assert seats[0].position == seat_position(0, 3, 300, 300)
