"""Keep-alive actions and their dispatch table."""

from __future__ import annotations

import ctypes
import logging
import random
import shlex
import subprocess
import time
import webbrowser
from enum import Enum
from typing import Callable, Mapping, Optional

import psutil

from .errors import ActionError, UnsupportedMethodError

logger = logging.getLogger(__name__)

VK_F15 = 0x7E
KEYEVENTF_KEYUP = 0x0002
APP_LIFETIME_SECONDS = 5.0
COMMAND_TIMEOUT_SECONDS = 60


class KeepAliveMethod(str, Enum):
    KEY_PRESS = "KeyPress"
    MOUSE_MOVE = "MouseMove"
    OPEN_APP = "OpenApp"
    OPEN_PAGE = "OpenPage"
    RUN_COMMAND = "RunCommand"
    RANDOM = "Random"

    @classmethod
    def parse(cls, name: str) -> "KeepAliveMethod":
        for method in cls:
            if method.value.lower() == name.strip().lower():
                return method
        raise UnsupportedMethodError(name)


ARGUMENT_METHODS = frozenset(
    {KeepAliveMethod.OPEN_APP, KeepAliveMethod.OPEN_PAGE, KeepAliveMethod.RUN_COMMAND}
)

Handler = Callable[[Optional[str]], None]


def press_key(argument: Optional[str]) -> None:
    key = int(argument, 0) if argument else VK_F15
    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    user32.keybd_event(key, 0, 0, 0)
    time.sleep(0.05)
    user32.keybd_event(key, 0, KEYEVENTF_KEYUP, 0)


class _POINT(ctypes.Structure):
    _fields_ = [("x", ctypes.c_long), ("y", ctypes.c_long)]


def nudge_mouse(argument: Optional[str]) -> None:
    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    point = _POINT()
    if not user32.GetCursorPos(ctypes.byref(point)):
        raise ActionError("GetCursorPos failed")
    user32.SetCursorPos(point.x + 1, point.y)
    time.sleep(0.05)
    user32.SetCursorPos(point.x, point.y)


def open_app(argument: Optional[str]) -> None:
    if not argument:
        raise ActionError("OpenApp needs an executable to launch")
    process = subprocess.Popen(shlex.split(argument, posix=False))
    time.sleep(APP_LIFETIME_SECONDS)
    try:
        parent = psutil.Process(process.pid)
        for child in parent.children(recursive=True):
            child.terminate()
        parent.terminate()
    except psutil.NoSuchProcess:
        logger.debug("Launched app %s already exited.", argument)


def open_page(argument: Optional[str]) -> None:
    if not argument:
        raise ActionError("OpenPage needs a URL to open")
    if not webbrowser.open(argument):
        raise ActionError(f"No browser could open {argument}")


def run_command(argument: Optional[str]) -> None:
    if not argument:
        raise ActionError("RunCommand needs a command line")
    completed = subprocess.run(
        argument, shell=True, capture_output=True, text=True, timeout=COMMAND_TIMEOUT_SECONDS
    )
    if completed.returncode != 0:
        raise ActionError(f"Command exited with {completed.returncode}: {completed.stderr.strip()}")


DEFAULT_HANDLERS: Mapping[KeepAliveMethod, Handler] = {
    KeepAliveMethod.KEY_PRESS: press_key,
    KeepAliveMethod.MOUSE_MOVE: nudge_mouse,
    KeepAliveMethod.OPEN_APP: open_app,
    KeepAliveMethod.OPEN_PAGE: open_page,
    KeepAliveMethod.RUN_COMMAND: run_command,
}


class ActionInvoker:
    """Resolves a method name to a concrete action and runs it."""

    def __init__(
        self,
        handlers: Optional[Mapping[KeepAliveMethod, Handler]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.handlers = dict(handlers or DEFAULT_HANDLERS)
        self._rng = rng or random.Random()

    def resolve(self, name: str, argument: Optional[str]) -> KeepAliveMethod:
        method = KeepAliveMethod.parse(name)
        if method is not KeepAliveMethod.RANDOM:
            return method
        candidates = sorted(
            (
                candidate
                for candidate in self.handlers
                if argument or candidate not in ARGUMENT_METHODS
            ),
            key=lambda candidate: candidate.value,
        )
        return self._rng.choice(candidates)

    def invoke(self, name: str, argument: Optional[str] = None) -> KeepAliveMethod:
        method = self.resolve(name, argument)
        handler = self.handlers.get(method)
        if handler is None:
            raise UnsupportedMethodError(name)
        picked_at_random = KeepAliveMethod.parse(name) is KeepAliveMethod.RANDOM
        if picked_at_random and method not in ARGUMENT_METHODS:
            # The shared argument belongs to the app/page/command methods.
            argument = None
        logger.info("Performing keep-alive action %s", method.value)
        handler(argument)
        return method
