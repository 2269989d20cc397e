from __future__ import annotations

from PySide6.QtGui import QImage


def sample_color(surface: QImage, x: float, y: float) -> str | None:
    """Return the ``#rrggbb`` color under a display-space point, or None off-surface."""
    ix = round(x)
    iy = round(y)
    if surface.isNull() or not surface.valid(ix, iy):
        return None
    return surface.pixelColor(ix, iy).name()
