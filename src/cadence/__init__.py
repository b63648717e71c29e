"""Cadence - playback session core for a music-streaming client."""

__version__ = "0.1.0"
