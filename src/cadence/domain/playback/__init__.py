"""Playback domain - session state machine and its device.

This domain handles:
- Queue, transport status, shuffle and loop policy
- Volume and mute
- Seek bar and volume slider interaction
- MPV integration via JSON IPC
"""

from .device import DevicePlayError, PlaybackError, TransportDevice
from .mpv_device import MpvDevice, check_mpv_available
from .notifications import LogNotifier, Notifier
from .seek import ControlBounds, SeekGestureController, fraction_at
from .session import (
    LoopMode,
    PlaybackSession,
    SessionSnapshot,
    TrackCatalog,
    TransportStatus,
)
from .timing import format_time, progress_fraction
from .volume import VolumeControl

__all__ = [
    "DevicePlayError",
    "PlaybackError",
    "TransportDevice",
    "MpvDevice",
    "check_mpv_available",
    "LogNotifier",
    "Notifier",
    "ControlBounds",
    "SeekGestureController",
    "fraction_at",
    "LoopMode",
    "PlaybackSession",
    "SessionSnapshot",
    "TrackCatalog",
    "TransportStatus",
    "format_time",
    "progress_fraction",
    "VolumeControl",
]
