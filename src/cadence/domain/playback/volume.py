"""Volume slider: pointer position straight to session volume."""

from typing import Optional

from .seek import ControlBounds, fraction_at
from .session import PlaybackSession


class VolumeControl:
    """Click or drag sets the volume directly; there is no preview state."""

    def __init__(self, session: PlaybackSession, bounds: Optional[ControlBounds] = None):
        self._session = session
        self.bounds = bounds
        self.dragging = False

    def measure(self, bounds: ControlBounds) -> None:
        self.bounds = bounds

    @property
    def level(self) -> float:
        return self._session.volume

    @property
    def muted(self) -> bool:
        return self._session.muted

    def toggle_mute(self) -> bool:
        return self._session.toggle_mute()

    def on_pointer_down(self, x: float) -> None:
        self._apply(x)
        self.dragging = True

    def on_pointer_move(self, x: float) -> None:
        if self.dragging:
            self._apply(x)

    def on_pointer_up(self) -> None:
        self.dragging = False

    def on_click(self, x: float) -> None:
        if not self.dragging:
            self._apply(x)

    def _apply(self, x: float) -> None:
        fraction = fraction_at(x, self.bounds)
        if fraction is not None:
            self._session.set_volume(fraction)
