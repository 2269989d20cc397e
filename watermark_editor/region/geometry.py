"""Region rectangle and image/display coordinate mapping.

Pure functions, no Qt dependencies. All region values live in image pixel
space; the display surface is the image scaled down by a single factor.
"""

from __future__ import annotations

from dataclasses import dataclass

MIN_SIZE = 20

# Default guess: a 100x30 box inset 20px from the right and 10px from the bottom,
# where watermarks usually sit.
DEFAULT_SIZE = (100, 30)
DEFAULT_INSET = (20, 10)


@dataclass(frozen=True, slots=True)
class Region:
    """Rectangle in image pixel space, (x, y, w, h) form."""

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.w, self.h)


@dataclass(frozen=True, slots=True)
class ViewTransform:
    """Uniform scale from image space to display space, 0 < scale <= 1."""

    scale: float

    @classmethod
    def fit(cls, width: int, height: int, max_width: float, max_height: float) -> ViewTransform:
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        s = min(float(max_width) / width, float(max_height) / height, 1.0)
        if s <= 0:
            raise ValueError(f"display bounds must be positive, got {max_width}x{max_height}")
        return cls(s)

    def to_display(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.scale, y * self.scale)

    def to_image(self, x: float, y: float) -> tuple[float, float]:
        return (x / self.scale, y / self.scale)

    def rect_to_display(self, region: Region) -> tuple[float, float, float, float]:
        s = self.scale
        return (region.x * s, region.y * s, region.w * s, region.h * s)

    def display_size(self, width: int, height: int) -> tuple[int, int]:
        return (max(1, round(width * self.scale)), max(1, round(height * self.scale)))


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def min_extent(limit: int, min_size: int = MIN_SIZE) -> int:
    """Smallest allowed extent along an axis of length ``limit``.

    Images narrower than ``min_size`` cap the minimum at the image size.
    """
    return min(min_size, limit)


def clamp_region(region: Region, image_width: int, image_height: int, min_size: int = MIN_SIZE) -> Region:
    """Round to whole pixels and force the region inside the image.

    Size is clamped first (floored at the minimum, capped at the image), then
    position is shifted to fit. Idempotent: clamping a valid region returns it
    unchanged.
    """
    min_w = min_extent(image_width, min_size)
    min_h = min_extent(image_height, min_size)

    w = int(_clamp(round(region.w), min_w, image_width))
    h = int(_clamp(round(region.h), min_h, image_height))
    x = int(_clamp(round(region.x), 0, image_width - w))
    y = int(_clamp(round(region.y), 0, image_height - h))
    return Region(x, y, w, h)


def is_valid_region(region: Region, image_width: int, image_height: int, min_size: int = MIN_SIZE) -> bool:
    if region.x < 0 or region.y < 0:
        return False
    if region.w < min_extent(image_width, min_size) or region.h < min_extent(image_height, min_size):
        return False
    if region.right > image_width:
        return False
    return not region.bottom > image_height


def default_region(image_width: int, image_height: int) -> Region:
    """Bottom-right guess for a freshly loaded image, clamped inside it."""
    w, h = DEFAULT_SIZE
    inset_x, inset_y = DEFAULT_INSET
    guess = Region(image_width - w - inset_x, image_height - h - inset_y, w, h)
    return clamp_region(guess, image_width, image_height)
