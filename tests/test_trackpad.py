from presence_keeper.models import GestureType, MovementAnalysis, MovementPattern, PointerSample
from presence_keeper.movement import analyze_movement
from presence_keeper.trackpad import (
    LAPTOP_BONUS,
    TRACKPAD_CONFIDENCE_MIN,
    LaptopDetector,
    classify_trackpad,
    movement_pattern_for,
)


def _move(dx, dy):
    return analyze_movement(PointerSample(100 + dx, 100 + dy), PointerSample(100, 100))


def test_below_threshold_short_circuits():
    verdict = classify_trackpad(_move(1, 0), is_laptop=True, movement_threshold=2)

    assert verdict.is_trackpad is False
    assert verdict.confidence == 0
    assert len(verdict.reasons) == 1


def test_small_diagonal_move_on_desktop_is_trackpad_like():
    # precise + diagonal + small circular + horizontal-dominant swipe
    verdict = classify_trackpad(_move(3, 1), is_laptop=False, movement_threshold=2)

    assert verdict.confidence == 50
    assert verdict.is_trackpad is True
    assert verdict.gesture_type is GestureType.SWIPE
    assert verdict.movement_pattern is MovementPattern.PRECISE


def test_vertical_move_flags_scroll():
    verdict = classify_trackpad(_move(1, 20), is_laptop=True, movement_threshold=2)

    assert verdict.gesture_type is GestureType.SCROLL
    assert verdict.movement_pattern is MovementPattern.MODERATE
    assert verdict.is_trackpad is True


def test_large_move_on_desktop_is_mouse():
    verdict = classify_trackpad(_move(150, 140), is_laptop=False, movement_threshold=2)

    assert verdict.is_trackpad is False
    assert verdict.movement_pattern is MovementPattern.LARGE
    assert verdict.gesture_type is GestureType.NONE


def test_laptop_bonus_never_lowers_confidence():
    for dx, dy in [(3, 1), (10, 10), (2, 40), (80, 5), (0, 3)]:
        desktop = classify_trackpad(_move(dx, dy), is_laptop=False, movement_threshold=2)
        laptop = classify_trackpad(_move(dx, dy), is_laptop=True, movement_threshold=2)

        assert laptop.confidence >= desktop.confidence
        assert laptop.confidence == min(100, desktop.confidence + LAPTOP_BONUS)
        for verdict in (desktop, laptop):
            assert 0 <= verdict.confidence <= 100
            assert verdict.is_trackpad == (verdict.confidence >= TRACKPAD_CONFIDENCE_MIN)


def test_internal_failure_returns_empty_verdict():
    broken = MovementAnalysis(distance="far", delta_x=1, delta_y=1)  # type: ignore[arg-type]

    verdict = classify_trackpad(broken, is_laptop=True, movement_threshold=2)

    assert verdict.is_trackpad is False
    assert verdict.confidence == 0


def test_movement_pattern_bands():
    assert movement_pattern_for(10) is MovementPattern.PRECISE
    assert movement_pattern_for(10.5) is MovementPattern.MODERATE
    assert movement_pattern_for(30) is MovementPattern.MODERATE
    assert movement_pattern_for(31) is MovementPattern.LARGE


def test_laptop_detector_caches_until_refresh():
    calls = []
    now = [0.0]

    def query():
        calls.append(now[0])
        return True

    detector = LaptopDetector(refresh_seconds=300, query=query, clock=lambda: now[0])

    assert detector.is_laptop() is True
    now[0] = 299
    detector.is_laptop()
    assert len(calls) == 1

    now[0] = 300
    detector.is_laptop()
    assert len(calls) == 2
