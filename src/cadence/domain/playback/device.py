"""
Transport device contract.

A transport device is the single audio output the playback session commands:
it loads a media URL, plays and pauses, reports elapsed time and duration,
and signals when the loaded media has ended.
"""

from typing import Awaitable, Callable, Optional, Protocol

EndedHandler = Callable[[], Awaitable[None]]


class PlaybackError(Exception):
    """Base exception for playback operations."""

    pass


class DevicePlayError(PlaybackError):
    """Raised when the device rejects a play request (decode, network, permission)."""

    def __init__(self, source: Optional[str], message: str = None):
        self.source = source
        super().__init__(message or f"Device could not play {source}")


class TransportDevice(Protocol):
    """Audio output primitive driven by the playback session."""

    def set_source(self, url: str) -> None:
        """Point the device at a media URL without starting playback."""
        ...

    def load(self) -> None:
        """Start loading the current source; returns immediately."""
        ...

    async def play(self) -> None:
        """Start or resume playback.

        Raises:
            DevicePlayError: The device could not play the current source
        """
        ...

    def pause(self) -> None:
        ...

    @property
    def current_time(self) -> float:
        """Elapsed seconds of the loaded media."""
        ...

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        ...

    @property
    def duration(self) -> float:
        """Duration in seconds; 0 or NaN until metadata has loaded."""
        ...

    @property
    def volume(self) -> float:
        ...

    @volume.setter
    def volume(self, level: float) -> None:
        ...

    def set_ended_handler(self, handler: EndedHandler) -> None:
        """Register the coroutine awaited when the loaded media ends."""
        ...
