"""Player router for playback control."""

import asyncio
import time
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cadence.domain.library.catalog import CatalogClient
from cadence.domain.library.exceptions import CatalogError, CollectionNotFoundError
from cadence.domain.library.models import Track, format_total_duration
from cadence.domain.playback.session import PlaybackSession

from ..deps import get_catalog, get_message_drain, get_session

router = APIRouter()


# Pydantic models
class QueueRequest(BaseModel):
    """Client-supplied queue (album view, playlist view or a single result)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tracks: list[dict[str, Any]]
    start_index: int = 0
    keep_current: bool = False
    autoplay: bool = False


class CollectionQueueRequest(BaseModel):
    """Options for queueing an album or playlist from the catalog."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_index: int = 0
    autoplay: bool = False


class PlayRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    track_id: Optional[str] = None


class VolumeRequest(BaseModel):
    level: float


class SeekRequest(BaseModel):
    fraction: float


class PlaybackState(BaseModel):
    """Current playback state."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_track: Optional[dict] = None
    queue: list[dict] = []
    queue_duration: str = "0 min"
    queue_index: Optional[int] = None
    status: str = "stopped"
    is_playing: bool = False
    pending: bool = False
    elapsed: float = 0.0
    duration: float = 0.0
    elapsed_label: str = "0:00"
    total_label: str = "0:00"
    progress: float = 0.0
    volume: float = 0.0
    muted: bool = False
    shuffle_enabled: bool = False
    loop_mode: str = "off"
    server_time: float = 0  # For client clock sync


class Notification(BaseModel):
    message: str
    level: str


def get_playback_state(session: PlaybackSession) -> dict:
    """Serialize the session snapshot with server time for clock sync."""
    snapshot = session.snapshot()
    state = PlaybackState(
        current_track=snapshot.track.to_dict() if snapshot.track else None,
        queue=[track.to_dict() for track in snapshot.queue],
        queue_duration=format_total_duration(snapshot.queue),
        queue_index=snapshot.current_index,
        status=snapshot.status.value,
        is_playing=snapshot.is_playing,
        pending=snapshot.pending,
        elapsed=snapshot.elapsed,
        duration=snapshot.duration,
        elapsed_label=snapshot.elapsed_label,
        total_label=snapshot.total_label,
        progress=snapshot.progress,
        volume=snapshot.volume,
        muted=snapshot.muted,
        shuffle_enabled=snapshot.shuffle,
        loop_mode=snapshot.loop_mode.value,
        server_time=time.time(),
    )
    return state.model_dump(by_alias=True)


@router.get("/state")
async def get_state(session: PlaybackSession = Depends(get_session)):
    return get_playback_state(session)


@router.post("/queue")
async def load_queue(request: QueueRequest, session: PlaybackSession = Depends(get_session)):
    """Replace the queue with a client-supplied track list."""
    try:
        tracks = [Track.from_api(item) for item in request.tracks]
    except ValueError as e:
        raise HTTPException(422, str(e))

    if not tracks:
        raise HTTPException(400, "Queue must contain at least one track")

    session.load_queue(tracks, start_index=request.start_index, keep_current=request.keep_current)
    if request.autoplay:
        await session.play()
    return get_playback_state(session)


@router.post("/queue/album/{album_id}")
async def queue_album(
    album_id: str,
    request: Optional[CollectionQueueRequest] = None,
    session: PlaybackSession = Depends(get_session),
    catalog: CatalogClient = Depends(get_catalog),
):
    """Queue an album's songs in album order."""
    return await _queue_collection(
        catalog.fetch_album_tracks, album_id, request, session
    )


@router.post("/queue/playlist/{playlist_id}")
async def queue_playlist(
    playlist_id: str,
    request: Optional[CollectionQueueRequest] = None,
    session: PlaybackSession = Depends(get_session),
    catalog: CatalogClient = Depends(get_catalog),
):
    """Queue a playlist's songs in playlist order."""
    return await _queue_collection(
        catalog.fetch_playlist_tracks, playlist_id, request, session
    )


@router.get("/songs")
async def list_songs(catalog: CatalogClient = Depends(get_catalog)):
    """Every song the catalog offers, for picking tracks to queue."""
    return {"songs": await _browse(catalog.list_tracks)}


@router.get("/search")
async def search_songs(query: str = "", catalog: CatalogClient = Depends(get_catalog)):
    return {"songs": await _browse(catalog.search_tracks, query)}


async def _browse(fetch: Callable[..., list[Track]], *args: Any) -> list[dict]:
    try:
        tracks = await asyncio.to_thread(fetch, *args)
    except CatalogError as e:
        logger.warning(f"Catalog unavailable while browsing songs: {e}")
        raise HTTPException(502, "Catalog unavailable")
    return [track.to_dict() for track in tracks]


async def _queue_collection(
    fetch: Callable[[str], list[Track]],
    collection_id: str,
    request: Optional[CollectionQueueRequest],
    session: PlaybackSession,
) -> dict:
    request = request or CollectionQueueRequest()
    try:
        tracks = await asyncio.to_thread(fetch, collection_id)
    except CollectionNotFoundError as e:
        raise HTTPException(404, str(e))
    except CatalogError as e:
        logger.warning(f"Catalog unavailable while queueing {collection_id}: {e}")
        raise HTTPException(502, "Catalog unavailable")

    if not tracks:
        raise HTTPException(404, f"{collection_id} has no playable songs")

    session.load_queue(tracks, start_index=request.start_index)
    if request.autoplay:
        await session.play()
    return get_playback_state(session)


@router.post("/play")
async def play(
    request: Optional[PlayRequest] = None,
    session: PlaybackSession = Depends(get_session),
):
    """Play a specific track by id, or resume the bound track."""
    if request and request.track_id:
        logger.info(f"Play request: track_id={request.track_id}")
        await session.play_by_id(request.track_id)
    else:
        await session.play()
    return get_playback_state(session)


@router.post("/pause")
async def pause(session: PlaybackSession = Depends(get_session)):
    session.pause()
    return get_playback_state(session)


@router.post("/toggle")
async def toggle(session: PlaybackSession = Depends(get_session)):
    await session.toggle_playback()
    return get_playback_state(session)


@router.post("/next")
async def next_track(session: PlaybackSession = Depends(get_session)):
    await session.next()
    return get_playback_state(session)


@router.post("/previous")
async def previous_track(session: PlaybackSession = Depends(get_session)):
    await session.previous()
    return get_playback_state(session)


@router.post("/shuffle")
async def toggle_shuffle(session: PlaybackSession = Depends(get_session)):
    session.toggle_shuffle()
    return get_playback_state(session)


@router.post("/loop")
async def cycle_loop(session: PlaybackSession = Depends(get_session)):
    session.cycle_loop_mode()
    return get_playback_state(session)


@router.post("/volume")
async def set_volume(request: VolumeRequest, session: PlaybackSession = Depends(get_session)):
    session.set_volume(request.level)
    return get_playback_state(session)


@router.post("/mute")
async def toggle_mute(session: PlaybackSession = Depends(get_session)):
    session.toggle_mute()
    return get_playback_state(session)


@router.post("/seek")
async def seek(request: SeekRequest, session: PlaybackSession = Depends(get_session)):
    session.seek_to(request.fraction)
    return get_playback_state(session)


@router.get("/notifications")
async def get_notifications(
    drain: Callable[[], list[tuple[str, str]]] = Depends(get_message_drain),
):
    """Hand pending transient messages to the client (each is returned once)."""
    return [
        Notification(message=message, level=level).model_dump()
        for message, level in drain()
    ]
