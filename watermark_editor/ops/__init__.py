"""External collaborators: image probing, watermark removal and the async invoke boundary.

``image_source`` and ``removal`` are Qt-free; ``invoker`` wraps them behind a
Qt signal.
"""

from .image_source import SUPPORTED_EXTENSIONS, ImageInfo, get_image_info, is_supported_image
from .removal import (
    RemovalMode,
    RemovalRequest,
    RemovalResult,
    remove_watermark,
    remove_watermark_batch,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "ImageInfo",
    "RemovalMode",
    "RemovalRequest",
    "RemovalResult",
    "get_image_info",
    "is_supported_image",
    "remove_watermark",
    "remove_watermark_batch",
]
