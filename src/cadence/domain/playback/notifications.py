"""
Notification sink for non-fatal playback errors.

The session reports problems ("could not play this track") through a
fire-and-forget notifier rather than raising them to the caller.
"""

from typing import Protocol

from cadence.core.output import log


class Notifier(Protocol):
    def notify(self, message: str, level: str = "error") -> None:
        ...


class LogNotifier:
    """Shows transient messages through the unified output layer."""

    def notify(self, message: str, level: str = "error") -> None:
        log(message, level=level)
