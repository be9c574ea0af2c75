"""The keep-alive host loop and the session state it owns."""

from __future__ import annotations

import logging
import random
import subprocess
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from .actions import ActionInvoker
from .classifier import classify_activity, is_engaged
from .config import KeepAliveSettings
from .energy import DisplayEnergyController, EnergyMode
from .errors import ActionError, UnsupportedMethodError
from .human_pattern import ActivityHistory, analyze_human_pattern
from .models import ActivityVerdict, GestureType, PointerSample, ScheduleVerdict
from .movement import analyze_movement
from .power import effective_wait_bounds
from .probe import InputProbe
from .schedule import WorkingHoursScheduler
from .trackpad import LaptopDetector, classify_trackpad
from .typing_tracker import TypingPatternTracker

logger = logging.getLogger(__name__)

WaitBounds = Callable[[timedelta, timedelta], tuple[timedelta, timedelta]]


@dataclass(slots=True)
class MonitorState:
    previous_position: Optional[PointerSample] = None
    previous_window_title: Optional[str] = None
    own_action_pending: bool = False
    last_verdict: Optional[ActivityVerdict] = None
    last_schedule: Optional[ScheduleVerdict] = None
    last_activity: Optional[datetime] = None
    last_check: Optional[datetime] = None
    last_action: Optional[datetime] = None
    last_action_method: Optional[str] = None
    actions_performed: int = 0
    errors: int = 0
    running: bool = False


class KeepAliveMonitor:
    """Polls input while the schedule allows and fires keep-alive actions when idle.

    All per-process mutable state lives on this instance; nothing is shared
    through module globals.
    """

    def __init__(
        self,
        settings: KeepAliveSettings,
        scheduler: WorkingHoursScheduler,
        probe: InputProbe,
        *,
        actions: Optional[ActionInvoker] = None,
        energy: Optional[DisplayEnergyController] = None,
        laptop: Optional[LaptopDetector] = None,
        wait_bounds: WaitBounds = effective_wait_bounds,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings
        self.scheduler = scheduler
        self._probe = probe
        self._actions = actions or ActionInvoker()
        self._energy = energy or DisplayEnergyController()
        self._laptop = laptop or LaptopDetector()
        self._wait_bounds = wait_bounds
        self._clock = clock
        self._rng = rng or random.Random()
        self._idle_mode = EnergyMode.parse(settings.idle_energy_mode)
        self._typing = TypingPatternTracker()
        self._history = ActivityHistory()
        self._state = MonitorState()
        self._lock = threading.Lock()

    def poll_activity(self, now: Optional[datetime] = None) -> ActivityVerdict:
        """Sample every input source once and classify the tick."""
        now = now or self._clock()
        threshold = self.settings.movement_threshold

        position = self._probe.cursor_position()
        previous = self._state.previous_position or position
        movement = analyze_movement(position, previous)
        trackpad = classify_trackpad(
            movement,
            self._laptop.is_laptop(),
            threshold,
            confidence_min=self.settings.trackpad_confidence_min,
        )
        gestures = (
            [trackpad.gesture_type.value]
            if trackpad.is_trackpad and trackpad.gesture_type is not GestureType.NONE
            else []
        )

        transitions, typing = self._typing.sample(self._probe.keys_down, now)
        held = transitions or self._typing.keys_down
        pressed_key = min(held) if held else None

        window_title = self._probe.foreground_window_title()
        previous_title = self._state.previous_window_title
        if self._state.own_action_pending:
            # A window our own action opened is not a user focus change.
            previous_title = window_title
        verdict = classify_activity(
            movement,
            movement_threshold=threshold,
            trackpad=trackpad,
            pressed_key=pressed_key,
            typing=typing,
            clicked_buttons=self._probe.pressed_buttons(),
            gestures=gestures,
            window_title=window_title,
            previous_window_title=previous_title,
            wheel_delta=self._probe.wheel_delta(),
        )

        with self._lock:
            self._state.previous_position = position
            self._state.own_action_pending = False
            if window_title is not None:
                self._state.previous_window_title = window_title
            self._state.last_verdict = verdict
            self._state.last_check = now
            if verdict.is_active:
                self._state.last_activity = now
        self._history.add(verdict, now)

        if self.settings.verbosity >= 4:
            logger.debug(
                "Tick: active=%s score=%d type=%s device=%s",
                verdict.is_active,
                verdict.confidence_score,
                verdict.activity_type.value,
                verdict.input_device.value,
            )
        if self.settings.verbosity >= 3 and verdict.is_active:
            logger.debug("Activity reasons: %s", "; ".join(verdict.reasons))
        return verdict

    def blocks_keep_alive(self, verdict: ActivityVerdict) -> bool:
        """Whether a verdict should postpone the next keep-alive action."""
        if not is_engaged(verdict, self.settings.engagement_threshold):
            return False
        now = self._clock()
        pattern = analyze_human_pattern(
            self._history.recent(now),
            sample_interval=self.settings.poll_interval.total_seconds(),
        )
        if not pattern.is_human_like:
            logger.info(
                "Recent activity looks automated (%s); not postponing.",
                "; ".join(pattern.reasons),
            )
            return False
        if self._energy.mode is not EnergyMode.NORMAL:
            self._energy.apply(EnergyMode.NORMAL)
        return True

    def perform_keep_alive(self) -> bool:
        settings = self.settings
        try:
            method = self._actions.invoke(settings.method, settings.method_argument)
        except UnsupportedMethodError as exc:
            logger.critical("%s; skipping this keep-alive tick.", exc)
            return False
        except (ActionError, OSError, ValueError, subprocess.SubprocessError) as exc:
            logger.error("Keep-alive action %s failed: %s", settings.method, exc)
            return False

        now = self._clock()
        # Our own input must not count as user activity on the next tick.
        position = self._probe.cursor_position()
        with self._lock:
            self._state.previous_position = position
            self._state.last_action = now
            self._state.last_action_method = method.value
            self._state.actions_performed += 1
            self._state.own_action_pending = True
        self._energy.apply(self._idle_mode)
        return True

    def run_cycle(self, stop_event: threading.Event) -> bool:
        """Wait out one randomized idle period, then act.

        User engagement restarts the wait. Returns True when an action ran.
        """
        wait_min, wait_max = self._wait_bounds(self.settings.wait_min, self.settings.wait_max)
        wait = timedelta(
            seconds=self._rng.uniform(wait_min.total_seconds(), wait_max.total_seconds())
        )
        poll_seconds = self.settings.poll_interval.total_seconds()
        deadline = self._clock() + wait
        logger.info("Next keep-alive action in %.0fs unless the user is active.", wait.total_seconds())

        while True:
            remaining = (deadline - self._clock()).total_seconds()
            if remaining <= 0:
                break
            if stop_event.wait(min(poll_seconds, remaining)):
                return False
            verdict = self.poll_activity()
            if self.blocks_keep_alive(verdict):
                deadline = self._clock() + wait
                if self.settings.verbosity >= 2:
                    logger.info(
                        "User active (%s, score %d); postponing keep-alive.",
                        verdict.activity_type.value,
                        verdict.confidence_score,
                    )
            if not self.scheduler.is_within_schedule(self._clock()):
                logger.info("Left the working schedule; ending the run window.")
                return False
        return self.perform_keep_alive()

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self.run_until_stopped(stop_event)
        except KeyboardInterrupt:
            logger.info("Keep-alive monitor interrupted.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the monitor until the provided event is set."""
        try:
            self._run_loop(stop_event)
        finally:
            self.cleanup()

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.info("Starting keep-alive monitor (method=%s).", self.settings.method)
        with self._lock:
            self._state.running = True
        cooldown = self.settings.error_cooldown.total_seconds()
        while not stop_event.is_set():
            try:
                self._iterate(stop_event)
            except Exception:
                with self._lock:
                    self._state.errors += 1
                logger.exception("Keep-alive loop failed; retrying in %.0fs.", cooldown)
                stop_event.wait(cooldown)

    def _iterate(self, stop_event: threading.Event) -> None:
        now = self._clock()
        verdict = self.scheduler.check(now)
        with self._lock:
            self._state.last_schedule = verdict
        if self.settings.verbosity >= 2:
            for message in verdict.messages:
                logger.info("Schedule: %s", message)
        for reason in verdict.bypass_reasons:
            logger.info("Bypass: %s", reason)

        if not verdict.should_run:
            logger.info("Not running: %s", verdict.reason)
            self._sleep_until(verdict.next_run_time, stop_event)
            return

        while not stop_event.is_set() and self.scheduler.is_within_schedule(self._clock()):
            self.run_cycle(stop_event)

    def _sleep_until(self, target: Optional[datetime], stop_event: threading.Event) -> None:
        if target is None:
            seconds = self.settings.error_cooldown.total_seconds()
        else:
            seconds = (target - self._clock()).total_seconds()
        seconds = max(1.0, min(seconds, self.settings.schedule_recheck.total_seconds()))
        if target is not None:
            logger.info("Sleeping %.0fs (next run at %s).", seconds, target.isoformat(" ", "minutes"))
        stop_event.wait(seconds)

    def cleanup(self) -> None:
        """Restore display state and clear trackers; safe to call repeatedly."""
        try:
            self._energy.reset()
        except Exception:
            logger.exception("Failed to restore display energy state.")
        self._typing.reset()
        self._history.clear()
        with self._lock:
            was_running = self._state.running
            self._state.running = False
            self._state.previous_position = None
            self._state.previous_window_title = None
            self._state.own_action_pending = False
        if was_running:
            logger.info("Keep-alive monitor stopped.")

    def status(self) -> dict[str, Any]:
        with self._lock:
            state = self._state
            verdict = state.last_verdict
            schedule = state.last_schedule
            return {
                "running": state.running,
                "last_check": state.last_check,
                "last_activity": state.last_activity,
                "last_action": state.last_action,
                "last_action_method": state.last_action_method,
                "actions_performed": state.actions_performed,
                "errors": state.errors,
                "energy_mode": self._energy.mode.value,
                "probe_failures": dict(getattr(self._probe, "failures", {})),
                "last_verdict": None
                if verdict is None
                else {
                    "is_active": verdict.is_active,
                    "confidence_score": verdict.confidence_score,
                    "activity_type": verdict.activity_type.value,
                    "input_device": verdict.input_device.value,
                    "reasons": list(verdict.reasons),
                },
                "schedule": None
                if schedule is None
                else {
                    "should_run": schedule.should_run,
                    "reason": schedule.reason,
                    "next_run_time": schedule.next_run_time,
                },
            }
