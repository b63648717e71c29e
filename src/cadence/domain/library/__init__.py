"""Library domain - catalog tracks and lookups.

This domain handles:
- Track value objects built from catalog JSON
- Duration label parsing and totals
- HTTP lookups for tracks, albums, playlists and search
"""

from .catalog import CatalogClient
from .exceptions import CatalogError, CollectionNotFoundError, TrackNotFoundError
from .models import Track, format_total_duration, parse_duration_label

__all__ = [
    "CatalogClient",
    "CatalogError",
    "CollectionNotFoundError",
    "TrackNotFoundError",
    "Track",
    "format_total_duration",
    "parse_duration_label",
]
