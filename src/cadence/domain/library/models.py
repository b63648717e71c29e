"""
Music library domain models.

Contains data structures for representing catalog tracks.
"""

from typing import Any, Iterable, NamedTuple, Optional


class Track(NamedTuple):
    """Represents a catalog track with metadata.

    The duration field is the catalog's display label ("m:ss"). Playback
    never seeks against it; the real duration comes from the device once
    the media has loaded.
    """

    id: str
    name: str = ""
    desc: str = ""
    image: str = ""  # Artwork URL
    file: str = ""  # Media URL
    duration: str = "0:00"
    album: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from a catalog song object.

        Accepts the backend's Mongo-style ``_id`` or a plain ``id``.

        Raises:
            ValueError: If the payload carries no identifier
        """
        track_id = data.get("_id") or data.get("id")
        if not track_id:
            raise ValueError(f"Song payload has no id: {data!r}")

        album = data.get("album")
        if isinstance(album, dict):
            album = album.get("_id") or album.get("name")

        return cls(
            id=str(track_id),
            name=data.get("name") or "",
            desc=data.get("desc") or "",
            image=data.get("image") or "",
            file=data.get("file") or "",
            duration=data.get("duration") or "0:00",
            album=str(album) if album is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return self._asdict()


def parse_duration_label(label: Optional[str]) -> int:
    """Convert a "m:ss" label to seconds.

    Malformed parts count as zero, so "3:xx" is 180 and "" is 0.
    """
    if not label:
        return 0

    parts = label.split(":")
    minutes = _to_int(parts[0])
    seconds = _to_int(parts[1]) if len(parts) > 1 else 0
    return minutes * 60 + seconds


def format_total_duration(tracks: Iterable[Track]) -> str:
    """Summarize the combined length of tracks, e.g. "1 hr 5 min" or "42 min"."""
    total_seconds = sum(parse_duration_label(track.duration) for track in tracks)

    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60

    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes} min"


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0
