"""Working-hours, holiday and break gating for the keep-alive loop."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from .config import ScheduleConfig
from .errors import SchedulingError
from .holidays import HolidayLookup, NoHolidays
from .models import ScheduleVerdict

logger = logging.getLogger(__name__)

SEARCH_HORIZON_DAYS = 366

REASON_FORCED = "Force run enabled"
REASON_NOT_WORKING_DAY = "Not a working day"
REASON_HOLIDAY = "Public holiday"
REASON_OUTSIDE_HOURS = "Outside working hours"
REASON_IN_BREAK = "In break period"
REASON_ALL_MET = "All conditions met"
REASON_ERROR = "Error checking working hours"


class WorkingHoursScheduler:
    """Decides whether the keep-alive loop may run at a given moment.

    Gates are evaluated in order: force run, working day, holiday, time of
    day, break. A bypassed gate is recorded and skipped. The scheduler keeps
    no state between calls beyond its configuration and holiday lookup.
    """

    def __init__(
        self, config: ScheduleConfig, holidays: Optional[HolidayLookup] = None
    ) -> None:
        self.config = config
        self.holidays: HolidayLookup = holidays or NoHolidays()

    def check(self, now: datetime) -> ScheduleVerdict:
        try:
            return self._evaluate(now)
        except Exception as exc:
            logger.exception("Working hours check failed.")
            return ScheduleVerdict(
                should_run=False,
                reason=REASON_ERROR,
                messages=[f"{REASON_ERROR}: {exc}"],
            )

    def is_within_schedule(self, now: datetime) -> bool:
        """Re-check the day, holiday and hour gates for an already running loop."""
        cfg = self.config
        if cfg.force_run:
            return True
        try:
            if not cfg.ignore_working_days and now.weekday() in cfg.not_working_days:
                return False
            if not cfg.ignore_holidays and self._is_holiday(now.date()):
                return False
            if not cfg.ignore_working_hours and not self._within_hours(now):
                return False
        except Exception:
            logger.exception("Schedule re-check failed; stopping the run window.")
            return False
        return True

    def _evaluate(self, now: datetime) -> ScheduleVerdict:
        cfg = self.config
        messages: list[str] = []
        bypass: list[str] = []

        if cfg.force_run:
            messages.append("Force run enabled: all restrictions bypassed")
            bypass.append("All restrictions bypassed (force run)")
            return ScheduleVerdict(
                should_run=True, reason=REASON_FORCED, messages=messages, bypass_reasons=bypass
            )

        weekday_name = now.strftime("%A")
        if now.weekday() in cfg.not_working_days:
            if cfg.ignore_working_days:
                messages.append(f"{weekday_name} is not a working day (bypassed)")
                bypass.append(f"Non-working day {weekday_name} ignored")
            else:
                next_day = self._next_eligible_day(now.date(), skip_holidays=False)
                next_run = datetime.combine(next_day, cfg.start_time)
                messages.append(f"{weekday_name} is not a working day")
                messages.append(f"Next run scheduled for {next_run:%A %Y-%m-%d %H:%M}")
                return ScheduleVerdict(
                    should_run=False,
                    reason=REASON_NOT_WORKING_DAY,
                    messages=messages,
                    next_run_time=next_run,
                    bypass_reasons=bypass,
                )
        else:
            messages.append(f"{weekday_name} is a working day")

        if cfg.ignore_holidays:
            messages.append("Holiday check bypassed")
            bypass.append("Holiday check ignored")
        elif self._is_holiday(now.date()):
            next_day = self._next_eligible_day(now.date(), skip_holidays=True)
            next_run = datetime.combine(next_day, cfg.start_time)
            messages.append(f"{now.date().isoformat()} is a public holiday")
            messages.append(f"Next run scheduled for {next_run:%A %Y-%m-%d %H:%M}")
            return ScheduleVerdict(
                should_run=False,
                reason=REASON_HOLIDAY,
                messages=messages,
                next_run_time=next_run,
                bypass_reasons=bypass,
            )
        else:
            messages.append("Not a public holiday")

        window = f"{cfg.start_time:%H:%M}-{cfg.end_time:%H:%M}"
        if self._within_hours(now):
            messages.append(f"{now:%H:%M} is within working hours {window}")
        elif cfg.ignore_working_hours:
            messages.append(f"{now:%H:%M} is outside working hours {window} (bypassed)")
            bypass.append("Working hours ignored")
        else:
            if now.time() < cfg.start_time:
                next_run = datetime.combine(now.date(), cfg.start_time)
            else:
                next_day = self._next_eligible_day(
                    now.date(), skip_holidays=not cfg.ignore_holidays
                )
                next_run = datetime.combine(next_day, cfg.start_time)
            messages.append(f"{now:%H:%M} is outside working hours {window}")
            messages.append(f"Next run scheduled for {next_run:%A %Y-%m-%d %H:%M}")
            return ScheduleVerdict(
                should_run=False,
                reason=REASON_OUTSIDE_HOURS,
                messages=messages,
                next_run_time=next_run,
                bypass_reasons=bypass,
            )

        active_break = next((b for b in cfg.breaks if b.contains(now)), None)
        if active_break is not None:
            minutes = active_break.duration.total_seconds() / 60.0
            messages.append(
                f"In break starting {active_break.start:%H:%M} ({minutes:.0f} min); keep running"
            )
            return ScheduleVerdict(
                should_run=True, reason=REASON_IN_BREAK, messages=messages, bypass_reasons=bypass
            )

        messages.append(REASON_ALL_MET)
        return ScheduleVerdict(
            should_run=True, reason=REASON_ALL_MET, messages=messages, bypass_reasons=bypass
        )

    def _within_hours(self, now: datetime) -> bool:
        return self.config.start_time <= now.time() < self.config.end_time

    def _is_holiday(self, day: date) -> bool:
        cfg = self.config
        return self.holidays.is_holiday(day, cfg.country_code, cfg.language_code)

    def _next_eligible_day(self, after: date, *, skip_holidays: bool) -> date:
        """Walk forward one day at a time to the next non-excluded day."""
        cfg = self.config
        candidate = after + timedelta(days=1)
        for _ in range(SEARCH_HORIZON_DAYS):
            excluded_day = (
                not cfg.ignore_working_days and candidate.weekday() in cfg.not_working_days
            )
            if not excluded_day and not (skip_holidays and self._is_holiday(candidate)):
                return candidate
            candidate += timedelta(days=1)
        raise SchedulingError(
            f"No working day found within {SEARCH_HORIZON_DAYS} days of {after.isoformat()}"
        )
