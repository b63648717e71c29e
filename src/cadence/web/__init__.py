"""Control API for the playback session."""

from .main import create_app

__all__ = ["create_app"]
