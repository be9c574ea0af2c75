"""Configuration models and helpers for the keep-alive engine."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Iterable, Optional

from .classifier import ENGAGEMENT_THRESHOLD
from .movement import DEFAULT_MOVEMENT_THRESHOLD
from .trackpad import TRACKPAD_CONFIDENCE_MIN

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_weekdays(names: Iterable[str]) -> frozenset[int]:
    """Turn weekday names or prefixes (``Sat``, ``sunday``) into ints, Monday=0."""
    days: set[int] = set()
    for name in names:
        for part in name.split(","):
            token = part.strip().lower()
            if not token:
                continue
            matches = [index for index, day in enumerate(WEEKDAY_NAMES) if day.startswith(token)]
            if len(token) < 2 or len(matches) != 1:
                raise ValueError(f"Unknown weekday: {part.strip()!r}")
            days.add(matches[0])
    return frozenset(days)


def parse_time_of_day(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def log_level_for(verbosity: int) -> int:
    """Map the 0-4 verbosity setting onto a logging level."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity <= 2:
        return logging.INFO
    return logging.DEBUG


@dataclass(frozen=True, slots=True)
class BreakWindow:
    start: time
    duration: timedelta

    def contains(self, moment: datetime) -> bool:
        begin = datetime.combine(moment.date(), self.start)
        return begin <= moment <= begin + self.duration


@dataclass(frozen=True, slots=True)
class ScheduleConfig:
    """Working schedule plus the bypass flags that override its gates."""

    not_working_days: frozenset[int] = frozenset({5, 6})
    start_time: time = time(8, 30)
    end_time: time = time(17, 0)
    breaks: tuple[BreakWindow, ...] = ()
    country_code: str = "NL"
    language_code: str = "EN"
    force_run: bool = False
    ignore_working_days: bool = False
    ignore_holidays: bool = False
    ignore_working_hours: bool = False

    @classmethod
    def from_options(
        cls,
        *,
        not_working_days: Iterable[str] = ("Saturday", "Sunday"),
        start: str = "08:30",
        end: str = "17:00",
        break_starts: Iterable[str] = ("10:00", "12:00", "15:00"),
        break_minutes: Iterable[tuple[float, float]] = ((10, 15), (30, 45), (10, 15)),
        country_code: str = "NL",
        language_code: str = "EN",
        force_run: bool = False,
        ignore_working_days: bool = False,
        ignore_holidays: bool = False,
        ignore_working_hours: bool = False,
        rng: Optional[random.Random] = None,
    ) -> "ScheduleConfig":
        """Build a config, drawing each break's duration once from its range."""
        rng = rng or random.Random()
        breaks = tuple(
            BreakWindow(
                start=parse_time_of_day(begin),
                duration=timedelta(minutes=rng.uniform(low, high)),
            )
            for begin, (low, high) in zip(break_starts, break_minutes)
        )
        return cls(
            not_working_days=parse_weekdays(not_working_days),
            start_time=parse_time_of_day(start),
            end_time=parse_time_of_day(end),
            breaks=breaks,
            country_code=country_code.upper(),
            language_code=language_code.upper(),
            force_run=force_run,
            ignore_working_days=ignore_working_days,
            ignore_holidays=ignore_holidays,
            ignore_working_hours=ignore_working_hours,
        )


@dataclass(slots=True)
class KeepAliveSettings:
    """Runtime configuration for the keep-alive monitor."""

    wait_min: timedelta = timedelta(seconds=60)
    wait_max: timedelta = timedelta(seconds=240)
    poll_interval: timedelta = timedelta(seconds=2)
    movement_threshold: float = DEFAULT_MOVEMENT_THRESHOLD
    engagement_threshold: int = ENGAGEMENT_THRESHOLD
    trackpad_confidence_min: int = TRACKPAD_CONFIDENCE_MIN
    method: str = "KeyPress"
    method_argument: Optional[str] = None
    idle_energy_mode: str = "Normal"
    verbosity: int = 1
    error_cooldown: timedelta = timedelta(seconds=60)
    schedule_recheck: timedelta = timedelta(minutes=5)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    @classmethod
    def from_seconds(
        cls,
        wait_min_seconds: float,
        wait_max_seconds: float,
        poll_seconds: float = 2.0,
        **overrides: object,
    ) -> "KeepAliveSettings":
        if wait_max_seconds < wait_min_seconds:
            raise ValueError("wait_max_seconds must be >= wait_min_seconds")
        return cls(
            wait_min=timedelta(seconds=wait_min_seconds),
            wait_max=timedelta(seconds=wait_max_seconds),
            poll_interval=timedelta(seconds=poll_seconds),
            **overrides,  # type: ignore[arg-type]
        )
