"""Image probing and display-raster decoding using pyvips.

Runs on worker threads; no Qt dependencies.
"""

from __future__ import annotations

import contextlib
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from watermark_editor.errors import ImageSourceError
from watermark_editor.logger import get_logger

_logger = get_logger("image_source")

RGB_CHANNELS = 3
SUPPORTED_EXTENSIONS = ("png", "jpg", "jpeg", "webp")

# Locate bundled libvips (for frozen exe/_MEIPASS and source tree)
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent.parent))
_LIBVIPS_DIR = _BASE_DIR / "libvips"
if os.name == "nt" and _LIBVIPS_DIR.exists():
    with contextlib.suppress(Exception):
        os.add_dll_directory(str(_LIBVIPS_DIR))


_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        _pyvips = pyvips
    return _pyvips


@dataclass(frozen=True, slots=True, eq=False)
class ImageInfo:
    """Intrinsic size of the asset plus a display-resolution RGB raster."""

    width: int
    height: int
    path: str
    thumbnail: np.ndarray


def is_supported_image(path: str) -> bool:
    return Path(path).suffix.lower().lstrip(".") in SUPPORTED_EXTENSIONS


def _to_rgb_array(image: Any) -> np.ndarray:
    pyvips = _get_pyvips_module()
    with contextlib.suppress(Exception):
        image = image.colourspace("srgb")
    if image.hasalpha():
        image = image.flatten(background=[0, 0, 0])
    if image.bands > RGB_CHANNELS:
        image = image.extract_band(0, n=RGB_CHANNELS)
    elif image.bands < RGB_CHANNELS:
        image = pyvips.Image.bandjoin([image] * RGB_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands).copy()
    if array.shape[2] != RGB_CHANNELS:
        raise ImageSourceError(f"Unsupported band count after conversion: {array.shape[2]}")
    return array


def get_image_info(path: str, max_width: int = 560, max_height: int = 420) -> ImageInfo:
    """Probe ``path`` and decode a raster no larger than ``max_width`` x ``max_height``.

    Raises:
        ImageSourceError: unsupported extension, missing file, or decode failure.
    """
    if not is_supported_image(path):
        raise ImageSourceError(f"Unsupported image format: {path}")
    if not os.path.isfile(path):
        raise ImageSourceError(f"File not found: {path}")

    pyvips = _get_pyvips_module()
    # Configure pyvips caches to avoid memory growth
    with contextlib.suppress(Exception):
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)

    _logger.debug("probing image: %s", path)
    try:
        header = pyvips.Image.new_from_file(path, access="sequential")
        width, height = int(header.width), int(header.height)
        if width <= 0 or height <= 0:
            raise ImageSourceError(f"Could not read image size: {path}")
        # Stay on the stored pixel grid: region coordinates go to ffmpeg unrotated.
        thumb = pyvips.Image.thumbnail(path, int(max_width), height=int(max_height), size="down", no_rotate=True)
        array = _to_rgb_array(thumb)
    except ImageSourceError:
        raise
    except Exception as e:
        _logger.warning("image decode failed for %s: %s", path, e)
        raise ImageSourceError(f"Failed to load image: {e}") from e

    _logger.info("image loaded: %s (%dx%d, display %dx%d)", path, width, height, array.shape[1], array.shape[0])
    return ImageInfo(width=width, height=height, path=path, thumbnail=array)
