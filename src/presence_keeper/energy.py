"""Display brightness and monitor power control on Windows."""

from __future__ import annotations

import ctypes
import logging
import subprocess
from enum import Enum

logger = logging.getLogger(__name__)

HWND_BROADCAST = 0xFFFF
WM_SYSCOMMAND = 0x0112
SC_MONITORPOWER = 0xF170
MONITOR_ON = -1
MONITOR_LOW_POWER = 1
MONITOR_OFF = 2

DIM_BRIGHTNESS = 10
NORMAL_BRIGHTNESS = 100
POWERSHELL_TIMEOUT_SECONDS = 15


class EnergyMode(str, Enum):
    NORMAL = "Normal"
    DIM = "Dim"
    SLEEP = "Sleep"
    OFF = "Off"

    @classmethod
    def parse(cls, value: str) -> "EnergyMode":
        for mode in cls:
            if mode.value.lower() == value.strip().lower():
                return mode
        raise ValueError(f"Unknown energy mode: {value!r}")


class DisplayEnergyController:
    """Applies energy modes on edges only; repeated requests are no-ops."""

    def __init__(self) -> None:
        self.mode = EnergyMode.NORMAL

    def apply(self, mode: EnergyMode) -> bool:
        if mode is self.mode:
            return False
        logger.info("Switching display energy mode %s -> %s", self.mode.value, mode.value)
        try:
            self._actuate(mode)
        except (OSError, AttributeError, subprocess.SubprocessError) as exc:
            logger.warning("Display energy change to %s failed: %s", mode.value, exc)
            return False
        self.mode = mode
        return True

    def reset(self) -> None:
        """Restore normal display state if anything was changed."""
        if self.mode is not EnergyMode.NORMAL:
            self.apply(EnergyMode.NORMAL)

    def _actuate(self, mode: EnergyMode) -> None:
        if mode is EnergyMode.NORMAL:
            self._set_monitor_power(MONITOR_ON)
            self._set_brightness(NORMAL_BRIGHTNESS)
        elif mode is EnergyMode.DIM:
            self._set_brightness(DIM_BRIGHTNESS)
        elif mode is EnergyMode.SLEEP:
            self._set_monitor_power(MONITOR_LOW_POWER)
        else:
            self._set_monitor_power(MONITOR_OFF)

    @staticmethod
    def _set_monitor_power(state: int) -> None:
        user32 = ctypes.windll.user32  # type: ignore[attr-defined]
        user32.PostMessageW(HWND_BROADCAST, WM_SYSCOMMAND, SC_MONITORPOWER, state)

    @staticmethod
    def _set_brightness(level: int) -> None:
        script = (
            "(Get-CimInstance -Namespace root/WMI -ClassName WmiMonitorBrightnessMethods)"
            f" | Invoke-CimMethod -MethodName WmiSetBrightness -Arguments @{{Timeout=1; Brightness={level}}}"
        )
        subprocess.run(
            ["powershell", "-NoProfile", "-Command", script],
            capture_output=True,
            timeout=POWERSHELL_TIMEOUT_SECONDS,
            check=True,
        )
