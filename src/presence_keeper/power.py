"""Power configuration queries used to tune the keep-alive cadence."""

from __future__ import annotations

import logging
import re
import subprocess
from datetime import timedelta
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

POWERCFG_COMMAND = ("powercfg", "/query", "SCHEME_CURRENT", "SUB_SLEEP", "STANDBYIDLE")
POWERCFG_TIMEOUT_SECONDS = 10
TIMEOUT_MARGIN_SECONDS = 5

_SETTING_PATTERN = re.compile(
    r"Current\s+(?P<source>AC|DC)\s+Power\s+Setting\s+Index:\s*0x(?P<value>[0-9a-fA-F]+)"
)


def parse_powercfg_output(output: str, source: str) -> Optional[int]:
    """Pull the AC or DC standby timeout (seconds) out of ``powercfg`` output."""
    wanted = source.upper()
    for match in _SETTING_PATTERN.finditer(output):
        if match.group("source").upper() == wanted:
            return int(match.group("value"), 16)
    return None


def get_sleep_timeout_seconds(source: str = "AC") -> Optional[int]:
    """Return the system sleep timeout for the given power source, if known."""
    try:
        completed = subprocess.run(
            POWERCFG_COMMAND,
            capture_output=True,
            text=True,
            timeout=POWERCFG_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Could not query the sleep timeout: %s", exc)
        return None
    timeout = parse_powercfg_output(completed.stdout, source)
    if timeout is None:
        logger.warning("Sleep timeout for %s power not found in powercfg output.", source)
    return timeout


def is_on_ac_power() -> bool:
    try:
        battery = psutil.sensors_battery()
    except Exception as exc:
        logger.warning("Battery query failed; assuming AC power: %s", exc)
        return True
    if battery is None or battery.power_plugged is None:
        return True
    return bool(battery.power_plugged)


def clamp_wait_bounds(
    wait_min: timedelta, wait_max: timedelta, sleep_timeout_seconds: Optional[int]
) -> tuple[timedelta, timedelta]:
    """Keep the longest wait a few seconds under the system's own idle timer.

    A missing timeout or a timeout of 0 (never sleep) leaves the bounds as-is.
    """
    if not sleep_timeout_seconds or sleep_timeout_seconds <= 0:
        return wait_min, wait_max
    ceiling = timedelta(seconds=max(1, sleep_timeout_seconds - TIMEOUT_MARGIN_SECONDS))
    new_max = min(wait_max, ceiling)
    new_min = min(wait_min, new_max)
    return new_min, new_max


def effective_wait_bounds(
    wait_min: timedelta, wait_max: timedelta
) -> tuple[timedelta, timedelta]:
    source = "AC" if is_on_ac_power() else "DC"
    timeout = get_sleep_timeout_seconds(source)
    new_min, new_max = clamp_wait_bounds(wait_min, wait_max, timeout)
    if new_max != wait_max:
        logger.info(
            "Wait time capped at %.0fs to stay under the %s sleep timeout (%ss).",
            new_max.total_seconds(),
            source,
            timeout,
        )
    return new_min, new_max
