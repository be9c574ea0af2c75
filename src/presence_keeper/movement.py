"""Geometry helpers for a single pointer displacement."""

from __future__ import annotations

import math

from .models import MovementAnalysis, PointerSample

DEFAULT_MOVEMENT_THRESHOLD = 2.0


def analyze_movement(current: PointerSample, previous: PointerSample) -> MovementAnalysis:
    """Return distance, deltas and (for diagonal moves) the angle to the x axis.

    The angle is only reported when both deltas are non-zero and is measured on
    absolute deltas, so it always falls within 0..90 degrees.
    """
    delta_x = current.x - previous.x
    delta_y = current.y - previous.y
    distance = math.sqrt(delta_x * delta_x + delta_y * delta_y)
    angle: float | None = None
    if delta_x != 0 and delta_y != 0:
        angle = math.atan2(abs(delta_y), abs(delta_x)) * 180.0 / math.pi
    return MovementAnalysis(
        distance=distance, delta_x=delta_x, delta_y=delta_y, angle_degrees=angle
    )


def is_significant(analysis: MovementAnalysis, threshold: float) -> bool:
    return analysis.distance >= threshold
