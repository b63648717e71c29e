"""Catalog-specific exceptions for error handling."""


class CatalogError(Exception):
    """Base exception for catalog operations."""

    pass


class TrackNotFoundError(CatalogError):
    """Raised when the catalog has no track with the requested id."""

    def __init__(self, track_id: str, message: str = None):
        self.track_id = track_id
        super().__init__(message or f"Track {track_id} not found")


class CollectionNotFoundError(CatalogError):
    """Raised when an album or playlist does not exist."""

    def __init__(self, kind: str, collection_id: str):
        self.kind = kind
        self.collection_id = collection_id
        super().__init__(f"{kind.capitalize()} {collection_id} not found")
