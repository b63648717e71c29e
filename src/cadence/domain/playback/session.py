"""
Playback session - the single long-lived owner of playback state.

Owns the queue, current position, transport status, shuffle/loop policy and
volume, and is the only component that commands the transport device.

Every change of the bound track goes through _bind(), and every play request
through _start_playback(); both bump a generation counter. A play request
whose completion arrives after the generation moved on is stale: its result
never touches session state.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Protocol

from loguru import logger

from ..library.exceptions import CatalogError, TrackNotFoundError
from ..library.models import Track
from .device import TransportDevice
from .notifications import Notifier
from .timing import clamp_fraction, format_time, progress_fraction, sanitize_seconds

DEFAULT_VOLUME = 0.7
DEFAULT_UNMUTE_VOLUME = 0.5


class TransportStatus(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class LoopMode(str, Enum):
    OFF = "off"
    ALL = "all"
    ONE = "one"

    def next_mode(self) -> "LoopMode":
        """Cycle off -> all -> one -> off."""
        order = list(LoopMode)
        return order[(order.index(self) + 1) % len(order)]


class TrackCatalog(Protocol):
    def fetch_track(self, track_id: str) -> Track:
        ...


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of session state for presentation."""

    track: Optional[Track]
    queue: tuple[Track, ...]
    current_index: Optional[int]
    status: TransportStatus
    pending: bool
    elapsed: float
    duration: float
    volume: float
    muted: bool
    shuffle: bool
    loop_mode: LoopMode

    @property
    def is_playing(self) -> bool:
        return self.status is TransportStatus.PLAYING

    @property
    def progress(self) -> float:
        return progress_fraction(self.elapsed, self.duration)

    @property
    def elapsed_label(self) -> str:
        return format_time(self.elapsed)

    @property
    def total_label(self) -> str:
        return format_time(self.duration)


class PlaybackSession:
    """Queue, transport and volume state bound to one transport device.

    Construct once at process start and hand the instance to whatever needs
    it; nothing else may command the device.
    """

    def __init__(
        self,
        device: TransportDevice,
        catalog: TrackCatalog,
        notifier: Notifier,
        default_volume: float = DEFAULT_VOLUME,
        unmute_volume: float = DEFAULT_UNMUTE_VOLUME,
        rng: Optional[random.Random] = None,
    ):
        self._device = device
        self._catalog = catalog
        self._notifier = notifier
        self._rng = rng or random.Random()
        self._unmute_volume = unmute_volume

        self._queue: tuple[Track, ...] = ()
        self._index: Optional[int] = None
        self._status = TransportStatus.STOPPED
        self._pending = False
        self._generation = 0
        # Set when the last track finished with loop off; play() restarts it
        self._at_end = False

        self._volume = clamp_fraction(default_volume) or 0.0
        self._muted = self._volume == 0.0
        self._remembered_volume = self._volume
        self._shuffle = False
        self._loop_mode = LoopMode.OFF

        self._device.volume = self._volume
        self._device.set_ended_handler(self.on_transport_ended)

    # State accessors

    @property
    def queue(self) -> tuple[Track, ...]:
        return self._queue

    @property
    def current_index(self) -> Optional[int]:
        return self._index

    @property
    def current_track(self) -> Optional[Track]:
        if self._index is None:
            return None
        return self._queue[self._index]

    @property
    def status(self) -> TransportStatus:
        return self._status

    @property
    def is_playing(self) -> bool:
        return self._status is TransportStatus.PLAYING

    @property
    def pending(self) -> bool:
        """True while the latest play request has not resolved."""
        return self._pending

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def elapsed(self) -> float:
        return sanitize_seconds(self._device.current_time)

    @property
    def duration(self) -> float:
        """Duration reported by the device; 0.0 until metadata has loaded."""
        return sanitize_seconds(self._device.duration)

    @property
    def volume(self) -> float:
        """Effective volume; 0.0 while muted."""
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def shuffle(self) -> bool:
        return self._shuffle

    @property
    def loop_mode(self) -> LoopMode:
        return self._loop_mode

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            track=self.current_track,
            queue=self._queue,
            current_index=self._index,
            status=self._status,
            pending=self._pending,
            elapsed=self.elapsed,
            duration=self.duration,
            volume=self._volume,
            muted=self._muted,
            shuffle=self._shuffle,
            loop_mode=self._loop_mode,
        )

    # Queue and transport

    def load_queue(
        self,
        tracks: Iterable[Track],
        start_index: int = 0,
        keep_current: bool = False,
    ) -> bool:
        """Replace the queue wholesale.

        Args:
            tracks: New playback order
            start_index: Index to bind, clamped into range
            keep_current: Keep the bound track (and its playback) when it is
                part of the new queue

        Returns:
            False when tracks is empty and nothing changed
        """
        tracks = tuple(tracks)
        if not tracks:
            logger.warning("Ignoring empty queue")
            return False

        current = self.current_track
        if keep_current and current is not None:
            for position, track in enumerate(tracks):
                if track.id == current.id:
                    self._queue = tracks
                    self._index = position
                    logger.info(
                        f"Loaded queue of {len(tracks)} tracks, kept {current.id} at {position}"
                    )
                    return True

        index = min(max(start_index, 0), len(tracks) - 1)
        self._queue = tracks
        self._bind(index)
        self._status = TransportStatus.STOPPED
        logger.info(f"Loaded queue of {len(tracks)} tracks at index {index}")
        return True

    async def play_by_id(self, track_id: str) -> bool:
        """Play a track from the queue, or fetch it and play it alone.

        Returns:
            True if the device started playing this track
        """
        index = self._find(track_id)
        if index is not None:
            self._bind(index)
            return await self._start_playback()

        generation = self._generation
        try:
            track = await asyncio.to_thread(self._catalog.fetch_track, track_id)
        except TrackNotFoundError:
            logger.warning(f"Track {track_id} not found in catalog")
            self._notifier.notify("Could not find this song", level="error")
            return False
        except CatalogError as e:
            logger.warning(f"Catalog lookup failed for {track_id}: {e}")
            self._notifier.notify("Could not play this song", level="error")
            return False

        if generation != self._generation:
            logger.debug(f"Discarding catalog result for {track_id}: track changed meanwhile")
            return False

        self.load_queue([track])
        return await self._start_playback()

    async def play(self) -> bool:
        """Play the bound track."""
        if not self._queue:
            logger.warning("Play requested with an empty queue")
            self._notifier.notify("No track selected", level="warning")
            return False

        if self._at_end:
            self._at_end = False
            self._device.current_time = 0.0

        return await self._start_playback()

    def pause(self) -> None:
        self._generation += 1
        self._pending = False
        self._device.pause()
        if self._queue:
            self._status = TransportStatus.PAUSED

    async def toggle_playback(self) -> bool:
        """Pause when playing, play otherwise. Returns the new playing flag."""
        if self._status is TransportStatus.PLAYING:
            self.pause()
            return False
        return await self.play()

    async def next(self) -> bool:
        if not self._queue:
            return False
        self._bind(self._advance(1))
        return await self._start_playback()

    async def previous(self) -> bool:
        if not self._queue:
            return False
        self._bind(self._advance(-1))
        return await self._start_playback()

    async def on_transport_ended(self) -> None:
        """Handle the device's end-of-media event according to the loop mode."""
        if not self._queue:
            return

        if self._loop_mode is LoopMode.ONE:
            logger.debug(f"Loop one: replaying {self.current_track.id}")
            self._device.current_time = 0.0
            await self._start_playback()
            return

        if self._loop_mode is LoopMode.ALL or self._shuffle:
            self._bind(self._advance(1))
            await self._start_playback()
            return

        if self._index >= len(self._queue) - 1:
            self._generation += 1
            self._pending = False
            self._status = TransportStatus.STOPPED
            self._at_end = True
            logger.info("Reached end of queue")
            return

        self._bind(self._index + 1)
        await self._start_playback()

    # Policy

    def toggle_shuffle(self) -> bool:
        self._shuffle = not self._shuffle
        logger.debug(f"Shuffle {'on' if self._shuffle else 'off'}")
        return self._shuffle

    def cycle_loop_mode(self) -> LoopMode:
        self._loop_mode = self._loop_mode.next_mode()
        logger.debug(f"Loop mode: {self._loop_mode.value}")
        return self._loop_mode

    def set_volume(self, level: float) -> None:
        """Set the volume, clamped into [0, 1]. Zero counts as muted."""
        level = clamp_fraction(level)
        if level is None:
            logger.debug("Ignoring NaN volume")
            return

        if level > 0:
            self._muted = False
        else:
            if not self._muted and self._volume > 0:
                self._remembered_volume = self._volume
            self._muted = True

        self._volume = level
        self._device.volume = level

    def toggle_mute(self) -> bool:
        """Mute or restore the remembered volume. Returns the new mute flag."""
        if self._muted:
            if self._remembered_volume > 0:
                self._volume = self._remembered_volume
            else:
                self._volume = self._unmute_volume
            self._muted = False
        else:
            self._remembered_volume = self._volume
            self._volume = 0.0
            self._muted = True

        self._device.volume = self._volume
        return self._muted

    def seek_to(self, fraction: float) -> bool:
        """Move the playhead to a fraction of the track's duration.

        Returns:
            False when nothing is loaded or the duration is still unknown
        """
        if not self._queue:
            return False

        duration = self.duration
        if duration <= 0:
            logger.debug("Seek ignored: duration unknown")
            return False

        fraction = clamp_fraction(fraction)
        if fraction is None:
            return False

        self._at_end = False
        self._device.current_time = fraction * duration
        return True

    # Internals

    def _find(self, track_id: str) -> Optional[int]:
        for position, track in enumerate(self._queue):
            if track.id == track_id:
                return position
        return None

    def _advance(self, step: int) -> int:
        """Index reached by stepping through the queue, honouring shuffle."""
        if self._shuffle:
            return self._random_index()
        return (self._index + step) % len(self._queue)

    def _random_index(self) -> int:
        """Uniform pick among indices other than the current one."""
        count = len(self._queue)
        if count == 1:
            return self._index
        pick = self._rng.randrange(count - 1)
        return pick if pick < self._index else pick + 1

    def _bind(self, index: int) -> None:
        """Point the device at queue[index]; in-flight play requests go stale."""
        had_source = self._index is not None
        self._generation += 1
        self._pending = False
        self._at_end = False
        self._index = index
        track = self._queue[index]

        if had_source:
            self._device.pause()
        self._device.set_source(track.file)
        self._device.load()
        logger.debug(f"Bound {track.id} ({track.name}) at index {index}")

    async def _start_playback(self) -> bool:
        """Ask the device to play, applying the outcome only if still current."""
        self._generation += 1
        generation = self._generation
        track = self.current_track
        self._status = TransportStatus.PLAYING
        self._pending = True

        try:
            await self._device.play()
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Ignoring stale play failure for {track.id}: {e}")
                return False
            logger.warning(f"Could not play {track.id} ({track.name}): {e}")
            self._pending = False
            self._status = TransportStatus.PAUSED
            self._notifier.notify("Could not play this track", level="error")
            return False

        if generation != self._generation:
            logger.debug(f"Ignoring stale play completion for {track.id}")
            # The device may have started anyway; keep it in line with the session
            if self._status is not TransportStatus.PLAYING:
                self._device.pause()
            return False

        self._pending = False
        logger.info(f"Playing {track.id} ({track.name})")
        return True
