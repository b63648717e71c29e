"""Shared fixtures: an in-memory transport device, catalog and notifier."""

import asyncio
import threading
from typing import Optional

import pytest

from cadence.domain.library.exceptions import CollectionNotFoundError, TrackNotFoundError
from cadence.domain.library.models import Track
from cadence.domain.playback.device import DevicePlayError
from cadence.domain.playback.session import PlaybackSession

S1 = Track(id="s1", name="Opening", file="https://cdn.example/s1.mp3", duration="3:20", album="a1")
S2 = Track(id="s2", name="Middle", file="https://cdn.example/s2.mp3", duration="4:05", album="a1")
S3 = Track(id="s3", name="Closing", file="https://cdn.example/s3.mp3", duration="2:40", album="a1")
S9 = Track(id="s9", name="Single", file="https://cdn.example/s9.mp3", duration="3:00")


class FakeDevice:
    """Transport device that records commands.

    With ``hold`` set, play() parks on a future until the test resolves it,
    which lets tests interleave requests the way slow media loads do.
    """

    def __init__(self, duration: float = 200.0):
        self.source: Optional[str] = None
        self.load_count = 0
        self.current_time = 0.0
        self.duration = duration
        self.volume = 1.0
        self.paused = True
        self.pause_calls = 0
        self.play_calls: list[Optional[str]] = []
        self.fail_sources: set[str] = set()
        self.hold = False
        self.pending: list[tuple[Optional[str], asyncio.Future]] = []
        self._ended_handler = None

    def set_source(self, url: str) -> None:
        self.source = url

    def load(self) -> None:
        self.load_count += 1
        self.current_time = 0.0

    async def play(self) -> None:
        source = self.source
        self.play_calls.append(source)
        if self.hold:
            future = asyncio.get_running_loop().create_future()
            self.pending.append((source, future))
            await future
        if source in self.fail_sources:
            raise DevicePlayError(source)
        self.paused = False

    def pause(self) -> None:
        self.pause_calls += 1
        self.paused = True

    def set_ended_handler(self, handler) -> None:
        self._ended_handler = handler

    async def fire_ended(self, position: Optional[float] = None) -> None:
        """Report end of media with the playhead at position (default: duration)."""
        self.current_time = self.duration if position is None else position
        await self._ended_handler()

    def resolve(self, position: int = 0, error: Optional[Exception] = None) -> None:
        """Complete a held play() call, successfully or with error."""
        _, future = self.pending.pop(position)
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(None)


class FakeCatalog:
    def __init__(self, tracks=(), albums=None, playlists=None):
        self.tracks = {track.id: track for track in tracks}
        self.albums = albums or {}
        self.playlists = playlists or {}
        self.error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.requests: list[str] = []

    def fetch_track(self, track_id: str) -> Track:
        self.requests.append(track_id)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if track_id not in self.tracks:
            raise TrackNotFoundError(track_id)
        return self.tracks[track_id]

    def fetch_album_tracks(self, album_id: str) -> list[Track]:
        return self._collection("album", self.albums, album_id)

    def fetch_playlist_tracks(self, playlist_id: str) -> list[Track]:
        return self._collection("playlist", self.playlists, playlist_id)

    def list_tracks(self) -> list[Track]:
        if self.error is not None:
            raise self.error
        return list(self.tracks.values())

    def search_tracks(self, query: str) -> list[Track]:
        if self.error is not None:
            raise self.error
        needle = query.strip().lower()
        if not needle:
            return []
        return [track for track in self.tracks.values() if needle in track.name.lower()]

    def _collection(self, kind, collections, collection_id):
        if self.error is not None:
            raise self.error
        if collection_id not in collections:
            raise CollectionNotFoundError(kind, collection_id)
        return list(collections[collection_id])


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "error") -> None:
        self.messages.append((message, level))


class FixedRng:
    """Stand-in for random.Random that returns queued picks."""

    def __init__(self, *picks: int):
        self.picks = list(picks)
        self.calls: list[int] = []

    def randrange(self, stop: int) -> int:
        self.calls.append(stop)
        return self.picks.pop(0)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(tracks=[S1, S2, S3, S9], albums={"a1": [S1, S2, S3]})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def session(device, catalog, notifier) -> PlaybackSession:
    return PlaybackSession(device, catalog, notifier)


@pytest.fixture
def loaded_session(session) -> PlaybackSession:
    """Session with S1, S2, S3 queued and S1 bound."""
    session.load_queue([S1, S2, S3])
    return session

