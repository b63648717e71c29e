from typing import Callable

from fastapi import Request

from cadence.domain.library.catalog import CatalogClient
from cadence.domain.playback.session import PlaybackSession


def get_session(request: Request) -> PlaybackSession:
    """FastAPI dependency for the process-wide playback session."""
    return request.app.state.session


def get_catalog(request: Request) -> CatalogClient:
    """FastAPI dependency for the track catalog."""
    return request.app.state.catalog


def get_message_drain(request: Request) -> Callable[[], list[tuple[str, str]]]:
    return request.app.state.drain_messages
