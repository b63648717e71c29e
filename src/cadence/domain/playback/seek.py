"""
Seek bar interaction.

Translates pointer x coordinates over a horizontal control into track
fractions and drives three behaviours: live scrubbing while dragging,
click-to-seek, and a hover preview that is never committed to playback.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .session import PlaybackSession
from .timing import clamp_fraction


@dataclass(frozen=True)
class ControlBounds:
    """Horizontal geometry of a mounted control, in pointer coordinates."""

    left: float
    width: float

    @property
    def measurable(self) -> bool:
        return not math.isnan(self.width) and self.width > 0


def fraction_at(x: float, bounds: Optional[ControlBounds]) -> Optional[float]:
    """Position of x along the control, clamped into [0, 1].

    Returns None when the control is not mounted or has no usable width.
    """
    if bounds is None or not bounds.measurable:
        return None
    return clamp_fraction((x - bounds.left) / bounds.width)


class SeekGestureController:
    """Seek bar state: dragging flag and hover preview.

    While dragging is active the presentation layer forwards pointer moves
    from anywhere on screen (``tracking_global``), not just over the bar.
    """

    def __init__(self, session: PlaybackSession, bounds: Optional[ControlBounds] = None):
        self._session = session
        self.bounds = bounds
        self.dragging = False
        self.tracking_global = False
        self.hover_fraction: Optional[float] = None

    def measure(self, bounds: ControlBounds) -> None:
        """Record the control's geometry once it is mounted or resized."""
        self.bounds = bounds

    def unmount(self) -> None:
        self.bounds = None
        self.dragging = False
        self.tracking_global = False
        self.hover_fraction = None

    @property
    def preview_visible(self) -> bool:
        return self.hover_fraction is not None and not self.dragging

    @property
    def progress(self) -> float:
        """Filled share of the bar."""
        return self._session.snapshot().progress

    def on_pointer_down(self, x: float) -> None:
        self._commit(x)
        self.dragging = True
        self.tracking_global = True

    def on_pointer_move(self, x: float) -> None:
        if not self.dragging:
            return
        self._commit(x)

    def on_pointer_up(self) -> None:
        self.dragging = False
        self.tracking_global = False

    def on_hover(self, x: float) -> None:
        if self.dragging:
            return
        self.hover_fraction = fraction_at(x, self.bounds)

    def on_hover_leave(self) -> None:
        self.hover_fraction = None

    def on_click(self, x: float) -> None:
        """Direct seek; a click that ends a drag was already committed."""
        if self.dragging:
            return
        self.on_pointer_down(x)
        self.on_pointer_up()

    def _commit(self, x: float) -> bool:
        fraction = fraction_at(x, self.bounds)
        if fraction is None:
            return False
        return self._session.seek_to(fraction)
