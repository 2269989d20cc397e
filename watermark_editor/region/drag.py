"""Pointer drag over the region: one session per press/release pair.

A session snapshots the pointer and region at press time; every move
recomputes the region from that snapshot, so the result never accumulates
rounding from earlier moves. Resize handles never invert the rectangle: a
moving edge stops ``MIN_SIZE`` short of the opposite, fixed edge.
"""

from __future__ import annotations

from dataclasses import dataclass

from .geometry import MIN_SIZE, Region, ViewTransform, _clamp, clamp_region, min_extent
from .hit_test import HIT_MARGIN, DragMode, hit_test

# Per-axis edge each mode moves: -1 leading (left/top), +1 trailing (right/bottom), 0 none.
_AXIS_EDGES: dict[DragMode, tuple[int, int]] = {
    DragMode.N: (0, -1),
    DragMode.S: (0, 1),
    DragMode.E: (1, 0),
    DragMode.W: (-1, 0),
    DragMode.NW: (-1, -1),
    DragMode.NE: (1, -1),
    DragMode.SW: (-1, 1),
    DragMode.SE: (1, 1),
}


def _resize_axis(start: float, length: float, delta: float, edge: int, limit: int, min_len: int) -> tuple[float, float]:
    if edge < 0:
        end = start + length
        new_start = _clamp(round(start + delta), 0, max(0, end - min_len))
        return new_start, end - new_start
    if edge > 0:
        new_end = _clamp(round(start + length + delta), start + min_len, max(start + min_len, limit))
        return start, new_end - start
    return start, length


def _span_axis(a: float, c: float, limit: int, min_len: int) -> tuple[float, float]:
    lo = _clamp(min(a, c), 0, limit)
    hi = _clamp(max(a, c), 0, limit)
    if hi - lo < min_len:
        # Grow away from the press point.
        if c >= a:
            hi = lo + min_len
        else:
            lo = hi - min_len
    return lo, hi - lo


def resize_region(
    anchor: Region, mode: DragMode, dx: float, dy: float, image_width: int, image_height: int
) -> Region:
    """Apply an image-space delta to ``anchor`` for a resize handle ``mode``."""
    edge_x, edge_y = _AXIS_EDGES[mode]
    x, w = _resize_axis(anchor.x, anchor.w, dx, edge_x, image_width, min_extent(image_width))
    y, h = _resize_axis(anchor.y, anchor.h, dy, edge_y, image_height, min_extent(image_height))
    return clamp_region(Region(x, y, w, h), image_width, image_height)


def move_region(anchor: Region, dx: float, dy: float, image_width: int, image_height: int) -> Region:
    x = _clamp(anchor.x + dx, 0, image_width - anchor.w)
    y = _clamp(anchor.y + dy, 0, image_height - anchor.h)
    return clamp_region(Region(x, y, anchor.w, anchor.h), image_width, image_height)


def span_region(
    start: tuple[float, float], end: tuple[float, float], image_width: int, image_height: int
) -> Region:
    """Rectangle between two image-space points, normalized to its min corner."""
    x, w = _span_axis(start[0], end[0], image_width, min_extent(image_width, MIN_SIZE))
    y, h = _span_axis(start[1], end[1], image_height, min_extent(image_height, MIN_SIZE))
    return clamp_region(Region(x, y, w, h), image_width, image_height)


@dataclass(frozen=True, slots=True)
class DragSession:
    """Active drag: exists only between pointer-down and pointer-up."""

    mode: DragMode
    anchor_pointer: tuple[float, float]
    anchor_region: Region

    @classmethod
    def begin(
        cls,
        pointer: tuple[float, float],
        region: Region,
        transform: ViewTransform,
        margin: float = HIT_MARGIN,
    ) -> DragSession:
        px, py = float(pointer[0]), float(pointer[1])
        mode = hit_test(px, py, region, transform, margin)
        return cls(mode, (px, py), region)

    def update(self, pointer: tuple[float, float], transform: ViewTransform, image_size: tuple[int, int]) -> Region:
        """Region for the current display-space pointer position."""
        width, height = image_size
        start = transform.to_image(*self.anchor_pointer)
        current = transform.to_image(float(pointer[0]), float(pointer[1]))
        dx = current[0] - start[0]
        dy = current[1] - start[1]

        if self.mode is DragMode.MOVE:
            return move_region(self.anchor_region, dx, dy, width, height)
        if self.mode is DragMode.CREATE:
            return span_region(start, current, width, height)
        return resize_region(self.anchor_region, self.mode, dx, dy, width, height)
