"""Time helpers shared by the session and its controls."""

import math
from typing import Optional


def sanitize_seconds(value: Optional[float]) -> float:
    """Return value as seconds, or 0.0 when unknown, NaN, infinite or negative."""
    if value is None:
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return 0.0
    return seconds


def clamp_fraction(value: float) -> Optional[float]:
    """Clamp into [0, 1]; NaN has no meaningful position and yields None."""
    if value is None or math.isnan(value):
        return None
    return max(0.0, min(1.0, value))


def progress_fraction(elapsed: float, duration: float) -> float:
    """Elapsed share of the track, 0.0 while the duration is unknown."""
    elapsed = sanitize_seconds(elapsed)
    duration = sanitize_seconds(duration)
    if duration <= 0:
        return 0.0
    return min(1.0, elapsed / duration)


def format_time(seconds: float) -> str:
    """Format seconds as m:ss (e.g. 3:07), the way the player displays time."""
    seconds = sanitize_seconds(seconds)
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
