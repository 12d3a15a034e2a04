from __future__ import annotations

import math

import pytest

from spiral_cloud import CloudConfig, SpiralCursor, spiral_point


def test_spiral_starts_at_origin() -> None:
    for radius in (0.5, 1.0, 3.5):
        assert spiral_point(0.0, radius) == (0.0, 0.0)


def test_one_full_turn_lands_straight_down_at_radius() -> None:
    for radius in (1.0, 1.25, 3.5):
        x, y = spiral_point(2 * math.pi, radius)
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(radius)


def test_spiral_is_periodic_in_angle_and_linear_in_radius() -> None:
    radius = 2.0
    for position in (0.3, 1.0, 2.5, 5.0):
        x1, y1 = spiral_point(position, radius)
        x2, y2 = spiral_point(position + 2 * math.pi, radius)
        assert math.atan2(x1, y1) == pytest.approx(math.atan2(x2, y2))
        assert math.hypot(x1, y1) == pytest.approx(position / (2 * math.pi) * radius)
        assert math.hypot(x2, y2) - math.hypot(x1, y1) == pytest.approx(radius)


def test_cursor_advances_monotonically_in_either_direction() -> None:
    for direction in (1, -1):
        cursor = SpiralCursor(increment=0.75, radius=1.25, direction=direction)
        last = 0.0
        for _ in range(50):
            cursor.advance()
            assert abs(cursor.position) > last
            last = abs(cursor.position)
        assert cursor.steps == 50
        assert cursor.position == pytest.approx(direction * 0.75 * 50)


def test_spread_tunes_spiral() -> None:
    box = CloudConfig(spread=50)
    assert box.spiral_increment == pytest.approx(1.0)
    assert box.spiral_radius == pytest.approx(1.5)

    cuddle = CloudConfig(spread=50, cuddle=True)
    assert cuddle.spiral_increment == pytest.approx(2.5)
    assert cuddle.spiral_radius == pytest.approx(6.0)
