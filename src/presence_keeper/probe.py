"""Polled raw-input sources for Windows."""

from __future__ import annotations

import ctypes
import logging
from collections import Counter
from ctypes import wintypes
from typing import Iterable, Optional, Protocol

from .models import PointerSample

logger = logging.getLogger(__name__)

MOUSE_BUTTONS = {"Left": 0x01, "Right": 0x02, "Middle": 0x04}
KEY_DOWN_MASK = 0x8000
KEY_PRESSED_SINCE_LAST_CALL = 0x0001


class InputProbe(Protocol):
    def cursor_position(self) -> PointerSample: ...

    def keys_down(self, watch_list: Iterable[int]) -> set[int]: ...

    def pressed_buttons(self) -> list[str]: ...

    def foreground_window_title(self) -> Optional[str]: ...

    def wheel_delta(self) -> int: ...


class WindowsInputProbe:
    """Samples pointer, keyboard, button and window state through user32.

    Each query degrades to a well-formed default when the underlying call
    fails; failures are logged and counted per query.
    """

    def __init__(self) -> None:
        self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]
        self._last_position = PointerSample(0, 0)
        self.failures: Counter[str] = Counter()

    def _failed(self, query: str, exc: BaseException) -> None:
        self.failures[query] += 1
        logger.warning(
            "Input probe %s failed (%d so far): %s", query, self.failures[query], exc
        )

    def cursor_position(self) -> PointerSample:
        point = wintypes.POINT()
        try:
            if not self._user32.GetCursorPos(ctypes.byref(point)):
                raise ctypes.WinError()
        except OSError as exc:
            self._failed("cursor_position", exc)
            return self._last_position
        self._last_position = PointerSample(point.x, point.y)
        return self._last_position

    def _key_state(self, code: int) -> bool:
        state = self._user32.GetAsyncKeyState(code)
        return bool(state & (KEY_DOWN_MASK | KEY_PRESSED_SINCE_LAST_CALL))

    def keys_down(self, watch_list: Iterable[int]) -> set[int]:
        try:
            return {code for code in watch_list if self._key_state(code)}
        except OSError as exc:
            self._failed("keys_down", exc)
            return set()

    def pressed_buttons(self) -> list[str]:
        try:
            return [name for name, code in MOUSE_BUTTONS.items() if self._key_state(code)]
        except OSError as exc:
            self._failed("pressed_buttons", exc)
            return []

    def foreground_window_title(self) -> Optional[str]:
        try:
            hwnd = self._user32.GetForegroundWindow()
            if not hwnd:
                return None
            length = self._user32.GetWindowTextLengthW(hwnd)
            buffer = ctypes.create_unicode_buffer(length + 1)
            self._user32.GetWindowTextW(hwnd, buffer, length + 1)
        except OSError as exc:
            self._failed("foreground_window_title", exc)
            return None
        return buffer.value.strip() or None

    def wheel_delta(self) -> int:
        # Wheel motion is only delivered as window messages; it cannot be polled.
        return 0
