"""Rolling-window keyboard activity tracker."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from .models import TypingEvent, TypingPattern, TypingState

VK_BACK = 0x08
VK_TAB = 0x09
VK_RETURN = 0x0D
VK_SHIFT = 0x10
VK_CONTROL = 0x11
VK_MENU = 0x12
VK_CAPITAL = 0x14
VK_ESCAPE = 0x1B
VK_SPACE = 0x20
VK_LWIN = 0x5B

NAVIGATION_KEYS = (
    0x21,  # page up
    0x22,  # page down
    0x23,  # end
    0x24,  # home
    0x25,  # left
    0x26,  # up
    0x27,  # right
    0x28,  # down
    0x2D,  # insert
    0x2E,  # delete
)

WATCHED_KEYS: tuple[int, ...] = (
    (VK_SPACE, VK_BACK, VK_RETURN, VK_ESCAPE, VK_TAB)
    + (VK_SHIFT, VK_CONTROL, VK_MENU, VK_LWIN, VK_CAPITAL)
    + NAVIGATION_KEYS
    + tuple(range(0x41, 0x5B))  # A-Z
    + tuple(range(0x30, 0x3A))  # 0-9
    + tuple(range(0x70, 0x7C))  # F1-F12
)

MAX_EVENTS = 10
SPEED_WINDOW = timedelta(seconds=10)
CONTINUOUS_GAP = timedelta(seconds=2)
SAMPLE_DEBOUNCE = timedelta(milliseconds=30)

FAST_WPM = 60.0
NORMAL_WPM = 20.0
SLOW_WPM = 5.0


def pattern_for_speed(speed_wpm: float) -> TypingPattern:
    if speed_wpm > FAST_WPM:
        return TypingPattern.FAST
    if speed_wpm > NORMAL_WPM:
        return TypingPattern.NORMAL
    if speed_wpm > SLOW_WPM:
        return TypingPattern.SLOW
    return TypingPattern.SINGLE


class TypingPatternTracker:
    """Tracks key-down transitions and derives a typing speed and pattern."""

    def __init__(self, watched_keys: Iterable[int] = WATCHED_KEYS) -> None:
        self.watched_keys = tuple(watched_keys)
        self._events: deque[TypingEvent] = deque(maxlen=MAX_EVENTS)
        self._keys_down: frozenset[int] = frozenset()
        self._last_sample: Optional[datetime] = None
        self._state = TypingState()

    @property
    def events(self) -> list[TypingEvent]:
        return list(self._events)

    @property
    def state(self) -> TypingState:
        return self._state

    @property
    def keys_down(self) -> frozenset[int]:
        return self._keys_down

    def sample(
        self, read_keys_down: Callable[[Iterable[int]], Iterable[int]], now: datetime
    ) -> tuple[frozenset[int], TypingState]:
        """Poll key state and fold new key-down transitions into the window.

        Polls closer together than the debounce interval reuse the previous
        key state and report no new transitions.
        """
        if self._last_sample is not None and now - self._last_sample < SAMPLE_DEBOUNCE:
            return frozenset(), self._state
        self._last_sample = now
        keys_down = frozenset(read_keys_down(self.watched_keys))
        transitions = keys_down - self._keys_down
        self._keys_down = keys_down
        return transitions, self.record(transitions, now)

    def record(self, new_keys: Iterable[int], now: datetime) -> TypingState:
        keys = tuple(sorted(new_keys))
        if keys:
            self._events.append(TypingEvent(timestamp=now, keys=keys, count=len(keys)))
            speed = self._speed(now)
            self._state = TypingState(
                is_typing=True, speed_wpm=speed, pattern=pattern_for_speed(speed)
            )
        elif self._events and now - self._events[-1].timestamp <= CONTINUOUS_GAP:
            self._state = TypingState(
                is_typing=True,
                speed_wpm=self._state.speed_wpm,
                pattern=TypingPattern.CONTINUOUS,
            )
        else:
            self._state = TypingState()
        return self._state

    def _speed(self, now: datetime) -> float:
        recent = [event for event in self._events if now - event.timestamp <= SPEED_WINDOW]
        if not recent:
            return 0.0
        minutes = (now - recent[0].timestamp).total_seconds() / 60.0
        if minutes <= 0:
            return 0.0
        return sum(event.count for event in recent) / minutes

    def reset(self) -> None:
        self._events.clear()
        self._keys_down = frozenset()
        self._last_sample = None
        self._state = TypingState()
