"""Domain models shared by the detection and scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class GestureType(str, Enum):
    NONE = "None"
    SCROLL = "Scroll"
    SWIPE = "Swipe"


class MovementPattern(str, Enum):
    PRECISE = "Precise"
    MODERATE = "Moderate"
    LARGE = "Large"


class TypingPattern(str, Enum):
    NONE = "None"
    SINGLE = "Single"
    SLOW = "Slow"
    NORMAL = "Normal"
    FAST = "Fast"
    CONTINUOUS = "Continuous"


class ActivityType(str, Enum):
    NONE = "None"
    MOUSE_MOVEMENT = "MouseMovement"
    KEYBOARD = "Keyboard"
    MOUSE_CLICK = "MouseClick"
    WINDOW_FOCUS = "WindowFocus"
    MOUSE_WHEEL = "MouseWheel"


class InputDevice(str, Enum):
    UNKNOWN = "Unknown"
    MOUSE = "Mouse"
    TRACKPAD = "Trackpad"


@dataclass(frozen=True, slots=True)
class PointerSample:
    """Screen coordinates captured at a single poll tick."""

    x: int
    y: int


@dataclass(frozen=True, slots=True)
class MovementAnalysis:
    distance: float
    delta_x: int
    delta_y: int
    angle_degrees: Optional[float] = None


@dataclass(slots=True)
class TrackpadVerdict:
    is_trackpad: bool = False
    confidence: int = 0
    gesture_type: GestureType = GestureType.NONE
    movement_pattern: MovementPattern = MovementPattern.PRECISE
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TypingEvent:
    timestamp: datetime
    keys: tuple[int, ...]
    count: int


@dataclass(frozen=True, slots=True)
class TypingState:
    is_typing: bool = False
    speed_wpm: float = 0.0
    pattern: TypingPattern = TypingPattern.NONE


@dataclass(slots=True)
class ActivityVerdict:
    """Scored classification of a single poll tick."""

    is_active: bool = False
    confidence_score: int = 0
    activity_type: ActivityType = ActivityType.NONE
    input_device: InputDevice = InputDevice.UNKNOWN
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ActivityRecord:
    """An active tick kept in the history used for human-likeness checks."""

    timestamp: datetime
    activity_type: ActivityType
    confidence: int


@dataclass(slots=True)
class HumanPatternVerdict:
    is_human_like: bool = True
    confidence: int = 0
    sufficient_data: bool = False
    reasons: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ScheduleVerdict:
    should_run: bool
    reason: str
    messages: list[str] = field(default_factory=list)
    next_run_time: Optional[datetime] = None
    bypass_reasons: list[str] = field(default_factory=list)


def clamp_score(value: float) -> int:
    """Clamp a heuristic score into the 0..100 range."""
    return int(max(0, min(100, round(value))))
