"""Exception types raised by the keep-alive engine."""

from __future__ import annotations


class PresenceKeeperError(Exception):
    """Base class for all engine errors."""


class SchedulingError(PresenceKeeperError):
    """Raised when no eligible working day can be found."""


class UnsupportedMethodError(PresenceKeeperError):
    """Raised for a keep-alive method name outside the supported set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unsupported keep-alive method: {name!r}")
        self.name = name


class ActionError(PresenceKeeperError):
    """Raised when a keep-alive action could not be carried out."""
