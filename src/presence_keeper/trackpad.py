"""Heuristic trackpad-vs-mouse discrimination."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import psutil

from .models import GestureType, MovementAnalysis, MovementPattern, TrackpadVerdict, clamp_score

logger = logging.getLogger(__name__)

TRACKPAD_CONFIDENCE_MIN = 40

LAPTOP_BONUS = 30
PRECISE_BONUS = 15
DIAGONAL_BONUS = 10
SMOOTH_BONUS = 10
SMALL_CIRCULAR_BONUS = 10
SCROLL_BONUS = 15
SWIPE_BONUS = 15

PRECISE_RANGE = (1.0, 50.0)
SMOOTH_RANGE = (5.0, 30.0)
SMALL_CIRCULAR_RANGE = (3.0, 15.0)
DIAGONAL_ANGLE_RANGE = (15.0, 75.0)
DOMINANT_AXIS_RATIO = 2

PRECISE_PATTERN_MAX = 10.0
MODERATE_PATTERN_MAX = 30.0


def movement_pattern_for(distance: float) -> MovementPattern:
    if distance <= PRECISE_PATTERN_MAX:
        return MovementPattern.PRECISE
    if distance <= MODERATE_PATTERN_MAX:
        return MovementPattern.MODERATE
    return MovementPattern.LARGE


def _within(value: float, bounds: tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


def classify_trackpad(
    analysis: MovementAnalysis,
    is_laptop: bool,
    movement_threshold: float,
    *,
    confidence_min: int = TRACKPAD_CONFIDENCE_MIN,
) -> TrackpadVerdict:
    """Score how likely a displacement came from a trackpad.

    Every satisfied condition adds a fixed bonus, so the score only grows as
    more conditions hold. Any internal failure yields the empty verdict.
    """
    try:
        return _score(analysis, is_laptop, movement_threshold, confidence_min)
    except Exception:
        logger.exception("Trackpad classification failed; reporting no trackpad.")
        return TrackpadVerdict(reasons=["Trackpad classification unavailable"])


def _score(
    analysis: MovementAnalysis,
    is_laptop: bool,
    movement_threshold: float,
    confidence_min: int,
) -> TrackpadVerdict:
    distance = analysis.distance
    if distance < movement_threshold:
        return TrackpadVerdict(
            reasons=[f"Movement below threshold ({distance:.1f}px < {movement_threshold}px)"]
        )

    score = 0
    reasons: list[str] = []
    gesture = GestureType.NONE

    if is_laptop:
        score += LAPTOP_BONUS
        reasons.append("Laptop chassis detected")
    if _within(distance, PRECISE_RANGE):
        score += PRECISE_BONUS
        reasons.append(f"Precise movement ({distance:.1f}px)")
    angle = analysis.angle_degrees
    if angle is not None and _within(angle, DIAGONAL_ANGLE_RANGE):
        score += DIAGONAL_BONUS
        reasons.append(f"Diagonal movement ({angle:.1f} deg)")
    if _within(distance, SMOOTH_RANGE):
        score += SMOOTH_BONUS
        reasons.append("Smooth movement range")
    if _within(distance, SMALL_CIRCULAR_RANGE):
        score += SMALL_CIRCULAR_BONUS
        reasons.append("Small circular movement range")

    abs_dx = abs(analysis.delta_x)
    abs_dy = abs(analysis.delta_y)
    if abs_dy > DOMINANT_AXIS_RATIO * abs_dx:
        gesture = GestureType.SCROLL
        score += SCROLL_BONUS
        reasons.append("Vertical-dominant movement (scroll gesture)")
    elif abs_dx > DOMINANT_AXIS_RATIO * abs_dy:
        gesture = GestureType.SWIPE
        score += SWIPE_BONUS
        reasons.append("Horizontal-dominant movement (swipe gesture)")

    confidence = clamp_score(score)
    return TrackpadVerdict(
        is_trackpad=confidence >= confidence_min,
        confidence=confidence,
        gesture_type=gesture,
        movement_pattern=movement_pattern_for(distance),
        reasons=reasons,
    )


def _battery_present() -> bool:
    try:
        return psutil.sensors_battery() is not None
    except Exception as exc:
        logger.warning("Battery query failed; assuming desktop chassis: %s", exc)
        return False


class LaptopDetector:
    """Answers "is this a laptop" from battery presence, cached for a while.

    Re-checking after ``refresh_seconds`` picks up docking changes without
    querying the battery on every poll tick.
    """

    def __init__(
        self,
        refresh_seconds: float = 300.0,
        *,
        query: Callable[[], bool] = _battery_present,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh_seconds = refresh_seconds
        self._query = query
        self._clock = clock
        self._cached: Optional[bool] = None
        self._checked_at = 0.0

    def is_laptop(self) -> bool:
        now = self._clock()
        if self._cached is None or now - self._checked_at >= self._refresh_seconds:
            self._cached = bool(self._query())
            self._checked_at = now
            logger.debug("Laptop chassis check: %s", self._cached)
        return self._cached

    def invalidate(self) -> None:
        self._cached = None
