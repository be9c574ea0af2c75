import math

import pytest

from presence_keeper.models import PointerSample
from presence_keeper.movement import analyze_movement, is_significant


def test_diagonal_move_reports_distance_and_angle():
    analysis = analyze_movement(PointerSample(103, 101), PointerSample(100, 100))

    assert analysis.delta_x == 3
    assert analysis.delta_y == 1
    assert analysis.distance == pytest.approx(math.sqrt(10))
    assert analysis.angle_degrees == pytest.approx(18.43, abs=0.01)
    assert is_significant(analysis, 2.0)


def test_no_movement_has_zero_distance_and_no_angle():
    analysis = analyze_movement(PointerSample(50, 50), PointerSample(50, 50))

    assert analysis.distance == 0
    assert analysis.angle_degrees is None
    assert not is_significant(analysis, 2.0)


@pytest.mark.parametrize("dx, dy", [(5, 0), (0, -7)])
def test_axis_aligned_move_has_no_angle(dx, dy):
    analysis = analyze_movement(PointerSample(dx, dy), PointerSample(0, 0))

    assert analysis.distance == pytest.approx(math.hypot(dx, dy))
    assert analysis.angle_degrees is None


def test_angle_uses_absolute_deltas():
    analysis = analyze_movement(PointerSample(-4, -4), PointerSample(0, 0))

    assert analysis.angle_degrees == pytest.approx(45.0)


@pytest.mark.parametrize("dx, dy", [(1, 1), (-3, 2), (0, 0), (12, -40), (-1, 0)])
def test_distance_is_zero_only_without_movement(dx, dy):
    distance = analyze_movement(PointerSample(dx, dy), PointerSample(0, 0)).distance

    assert distance >= 0
    assert (distance == 0) == (dx == 0 and dy == 0)
