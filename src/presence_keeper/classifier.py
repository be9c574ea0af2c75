"""Aggregates raw input signals into a scored activity verdict."""

from __future__ import annotations

from typing import Optional, Sequence

from .models import (
    ActivityType,
    ActivityVerdict,
    InputDevice,
    MovementAnalysis,
    TrackpadVerdict,
    TypingPattern,
    TypingState,
    clamp_score,
)

MOVEMENT_SCORE = 30
TRACKPAD_MOVEMENT_BONUS = 10
KEYBOARD_SCORE = 40
TYPING_BONUS = {
    TypingPattern.CONTINUOUS: 20,
    TypingPattern.FAST: 15,
    TypingPattern.NORMAL: 10,
}
CLICK_SCORE = 50
GESTURE_CLICK_BONUS = 15
WINDOW_FOCUS_SCORE = 25
WHEEL_SCORE = 20

# Callers only treat a verdict as real engagement at or above this score.
ENGAGEMENT_THRESHOLD = 20


def classify_activity(
    movement: MovementAnalysis,
    *,
    movement_threshold: float,
    trackpad: Optional[TrackpadVerdict] = None,
    pressed_key: Optional[int] = None,
    typing: Optional[TypingState] = None,
    clicked_buttons: Sequence[str] = (),
    gestures: Sequence[str] = (),
    window_title: Optional[str] = None,
    previous_window_title: Optional[str] = None,
    wheel_delta: int = 0,
) -> ActivityVerdict:
    """Score one poll tick.

    Signals are evaluated in a fixed order (movement, keyboard, click, window
    focus, wheel); the first one that fires determines the activity type.
    Every signal leaves a reason whether it fired or not.
    """
    verdict = ActivityVerdict()
    score = 0

    def mark(activity: ActivityType) -> None:
        if verdict.activity_type is ActivityType.NONE:
            verdict.activity_type = activity

    if movement.distance >= movement_threshold:
        score += MOVEMENT_SCORE
        mark(ActivityType.MOUSE_MOVEMENT)
        if trackpad is not None and trackpad.is_trackpad:
            score += TRACKPAD_MOVEMENT_BONUS
            verdict.input_device = InputDevice.TRACKPAD
            verdict.reasons.append(
                f"Trackpad movement detected ({movement.distance:.1f}px, "
                f"confidence {trackpad.confidence})"
            )
        else:
            verdict.input_device = InputDevice.MOUSE
            verdict.reasons.append(f"Mouse movement detected ({movement.distance:.1f}px)")
    else:
        verdict.reasons.append(
            f"No significant movement ({movement.distance:.1f}px < {movement_threshold}px)"
        )

    if pressed_key is not None:
        score += KEYBOARD_SCORE
        mark(ActivityType.KEYBOARD)
        pattern = typing.pattern if typing is not None else TypingPattern.NONE
        bonus = TYPING_BONUS.get(pattern, 0)
        score += bonus
        if bonus:
            verdict.reasons.append(
                f"Keyboard input detected (key 0x{pressed_key:02X}, {pattern.value} typing)"
            )
        else:
            verdict.reasons.append(f"Keyboard input detected (key 0x{pressed_key:02X})")
    else:
        verdict.reasons.append("No keyboard input")

    if clicked_buttons:
        score += CLICK_SCORE
        mark(ActivityType.MOUSE_CLICK)
        if gestures:
            score += GESTURE_CLICK_BONUS
            verdict.reasons.append(f"Trackpad gesture detected: {', '.join(gestures)}")
        else:
            verdict.reasons.append(f"Mouse click detected: {', '.join(clicked_buttons)}")
    else:
        verdict.reasons.append("No mouse clicks")

    if (
        window_title is not None
        and previous_window_title is not None
        and window_title != previous_window_title
    ):
        score += WINDOW_FOCUS_SCORE
        mark(ActivityType.WINDOW_FOCUS)
        verdict.reasons.append(f"Window focus changed to {window_title!r}")
    else:
        verdict.reasons.append("No window focus change")

    if wheel_delta:
        score += WHEEL_SCORE
        mark(ActivityType.MOUSE_WHEEL)
        verdict.reasons.append(f"Mouse wheel scrolled ({wheel_delta})")
    else:
        verdict.reasons.append("No mouse wheel activity")

    verdict.confidence_score = clamp_score(score)
    verdict.is_active = score > 0
    return verdict


def is_engaged(verdict: ActivityVerdict, threshold: int = ENGAGEMENT_THRESHOLD) -> bool:
    """Whether a verdict is strong enough to hold back the keep-alive action."""
    return verdict.is_active and verdict.confidence_score >= threshold
