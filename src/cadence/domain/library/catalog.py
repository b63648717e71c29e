"""
Track catalog accessor.

Read-only HTTP lookups against the streaming service's REST backend. The
playback session only needs fetch_track; album, playlist, list and search
lookups feed queue sources.
"""

from typing import Any, Optional

import requests
from loguru import logger

from .exceptions import CatalogError, CollectionNotFoundError, TrackNotFoundError
from .models import Track


class CatalogClient:
    """Thin wrapper around the catalog REST endpoints.

    Calls block; async callers run them with asyncio.to_thread.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def fetch_track(self, track_id: str) -> Track:
        """Fetch one track by id.

        Raises:
            TrackNotFoundError: Unknown id or unsuccessful response body
            CatalogError: Network or server failure
        """
        status, payload = self._get(f"/songs/{track_id}")
        if status == 404 or not payload.get("success", True) or not payload.get("song"):
            raise TrackNotFoundError(track_id)

        track = _parse_track(payload["song"])
        logger.debug(f"Fetched track {track.id}: {track.name}")
        return track

    def fetch_album_tracks(self, album_id: str) -> list[Track]:
        """Fetch an album's songs in album order."""
        status, payload = self._get(f"/albums/{album_id}")
        album = payload.get("album")
        if status == 404 or not payload.get("success", True) or not album:
            raise CollectionNotFoundError("album", album_id)

        return _parse_tracks(album.get("songs") or [])

    def fetch_playlist_tracks(self, playlist_id: str) -> list[Track]:
        """Fetch a playlist's songs in playlist order."""
        status, payload = self._get(f"/playlists/{playlist_id}")
        playlist = payload.get("playlist")
        if status == 404 or not payload.get("success", True) or not playlist:
            raise CollectionNotFoundError("playlist", playlist_id)

        return _parse_tracks(playlist.get("songs") or [])

    def list_tracks(self) -> list[Track]:
        """List every song in the catalog."""
        status, payload = self._get("/songs/list")
        # The backend answers an empty catalog with 400 "No songs found"
        if status in (400, 404):
            return []
        return _parse_tracks(payload.get("songs") or [])

    def search_tracks(self, query: str) -> list[Track]:
        """Search songs by name or description."""
        if not query or not query.strip():
            return []

        status, payload = self._get("/search", params={"query": query.strip()})
        if status in (400, 404):
            return []
        results = payload.get("results") or {}
        return _parse_tracks(results.get("songs") or [])

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> tuple[int, dict]:
        """GET a catalog path and decode the JSON body.

        4xx responses are returned to the caller so it can map them to
        not-found semantics; everything else that fails raises CatalogError.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.http.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Catalog request failed: GET {url}: {e}")
            raise CatalogError(f"Catalog request failed: {e}") from e

        if 400 <= response.status_code < 500:
            logger.debug(f"Catalog GET {url} returned {response.status_code}")
            return response.status_code, _json_or_empty(response)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.warning(f"Catalog server error: GET {url}: {e}")
            raise CatalogError(f"Catalog server error: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogError(f"Catalog returned invalid JSON for {url}") from e

        if not isinstance(payload, dict):
            raise CatalogError(f"Catalog returned unexpected payload for {url}")
        return response.status_code, payload


def _json_or_empty(response: requests.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse_track(data: dict[str, Any]) -> Track:
    try:
        return Track.from_api(data)
    except ValueError as e:
        raise CatalogError(str(e)) from e


def _parse_tracks(items: list[dict[str, Any]]) -> list[Track]:
    """Parse song objects, skipping entries that are unusable for playback."""
    tracks = []
    for item in items:
        if not isinstance(item, dict):
            # Unpopulated references come back as bare ids
            logger.debug(f"Skipping unpopulated song reference: {item!r}")
            continue
        try:
            tracks.append(Track.from_api(item))
        except ValueError:
            logger.warning(f"Skipping song without id: {item!r}")
    return tracks
