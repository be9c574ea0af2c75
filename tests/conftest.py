from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

import pytest

from presence_keeper.config import BreakWindow, ScheduleConfig
from presence_keeper.models import PointerSample


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeStopEvent:
    """Stands in for threading.Event; waiting advances the fake clock."""

    def __init__(self, clock: FakeClock, stop_after: Optional[int] = None) -> None:
        self.clock = clock
        self.waits: list[float] = []
        self._stop_after = stop_after
        self._set = False

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        self.clock.advance(timeout)
        if self._stop_after is not None and len(self.waits) >= self._stop_after:
            self._set = True
        return self._set


class FakeProbe:
    """Scripted input source: each call pops the next queued value."""

    def __init__(self) -> None:
        self.position = PointerSample(100, 100)
        self.positions: list[PointerSample] = []
        self.keys: list[set[int]] = []
        self.buttons: list[list[str]] = []
        self.titles: list[Optional[str]] = []
        self.title: Optional[str] = "Editor"
        self.failures: dict[str, int] = {}

    def cursor_position(self) -> PointerSample:
        if self.positions:
            self.position = self.positions.pop(0)
        return self.position

    def keys_down(self, watch_list: Iterable[int]) -> set[int]:
        watched = set(watch_list)
        return (self.keys.pop(0) if self.keys else set()) & watched

    def pressed_buttons(self) -> list[str]:
        return self.buttons.pop(0) if self.buttons else []

    def foreground_window_title(self) -> Optional[str]:
        if self.titles:
            self.title = self.titles.pop(0)
        return self.title

    def wheel_delta(self) -> int:
        return 0


class StubHolidays:
    def __init__(self, *days: date) -> None:
        self.days = set(days)
        self.calls: list[date] = []

    def is_holiday(self, day: date, country_code: str, language_code: str) -> bool:
        self.calls.append(day)
        return day in self.days


@pytest.fixture
def schedule_config() -> ScheduleConfig:
    return ScheduleConfig(
        not_working_days=frozenset({5, 6}),
        start_time=time(8, 30),
        end_time=time(17, 0),
        breaks=(
            BreakWindow(time(10, 0), timedelta(minutes=15)),
            BreakWindow(time(12, 0), timedelta(minutes=30)),
            BreakWindow(time(15, 0), timedelta(minutes=10)),
        ),
    )


@pytest.fixture
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def clock() -> FakeClock:
    # Wednesday, within working hours and outside every break.
    return FakeClock(datetime(2026, 10, 21, 9, 0))
