"""Region editing core: geometry, hit-testing and drag sessions.

Keep this package free of Qt imports; the editor UI builds on top of it.
"""

from .drag import DragSession, move_region, resize_region, span_region
from .geometry import MIN_SIZE, Region, ViewTransform, clamp_region, default_region, is_valid_region
from .hit_test import HIT_MARGIN, DragMode, control_points, hit_test

__all__ = [
    "HIT_MARGIN",
    "MIN_SIZE",
    "DragMode",
    "DragSession",
    "Region",
    "ViewTransform",
    "clamp_region",
    "control_points",
    "default_region",
    "hit_test",
    "is_valid_region",
    "move_region",
    "resize_region",
    "span_region",
]
