"""Compositing of the editor surface.

Draws the display raster, a translucent preview of the removal over the
region, the dashed outline and the eight handles. Stateless: everything it
needs comes in through ``EditorScene``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPen

from watermark_editor.ops.removal import RemovalMode
from watermark_editor.region import Region, ViewTransform, control_points

_RGB_CHANNELS = 3
_EXPECTED_NDIM = 3

# Handle size in display pixels; not scaled with the image.
HANDLE_SIZE = 8
OUTLINE_COLOR = "#1677ff"
OUTLINE_WIDTH = 2
OUTLINE_DASH = (5, 3)
BLUR_PREVIEW = QColor(128, 128, 128, 102)
FILL_PREVIEW_ALPHA = 0xAA


@dataclass(frozen=True)
class EditorScene:
    raster: QImage
    image_size: tuple[int, int]
    region: Region
    transform: ViewTransform
    mode: RemovalMode
    fill_color: str
    handle_size: int = HANDLE_SIZE

    @property
    def display_size(self) -> tuple[int, int]:
        return self.transform.display_size(*self.image_size)


def qimage_from_array(image_data: Any) -> QImage:
    """Convert an (H, W, 3) uint8 RGB array into a QImage that owns its buffer."""
    arr = np.ascontiguousarray(image_data)
    if arr.ndim != _EXPECTED_NDIM or arr.shape[2] < _RGB_CHANNELS:
        raise ValueError("unexpected image array shape")
    if arr.shape[2] > _RGB_CHANNELS:
        arr = np.ascontiguousarray(arr[:, :, :_RGB_CHANNELS])
    height, width = arr.shape[0], arr.shape[1]
    bytes_per_line = _RGB_CHANNELS * width
    return QImage(arr.data, width, height, bytes_per_line, QImage.Format.Format_RGB888).copy()


def overlay_color(mode: RemovalMode, fill_color: str) -> QColor:
    if mode is RemovalMode.FILL:
        color = QColor(fill_color)
        if not color.isValid():
            color = QColor(255, 255, 255)
        color.setAlpha(FILL_PREVIEW_ALPHA)
        return color
    return QColor(BLUR_PREVIEW)


def handle_rects(region: Region, transform: ViewTransform, size: int = HANDLE_SIZE) -> list[QRectF]:
    half = size / 2.0
    return [QRectF(px - half, py - half, size, size) for px, py in control_points(region, transform).values()]


def render(painter: QPainter, scene: EditorScene) -> None:
    dw, dh = scene.display_size
    painter.drawImage(QRectF(0, 0, dw, dh), scene.raster)

    x, y, w, h = scene.transform.rect_to_display(scene.region)
    rect = QRectF(x, y, w, h)
    painter.fillRect(rect, overlay_color(scene.mode, scene.fill_color))

    pen = QPen(QColor(OUTLINE_COLOR), OUTLINE_WIDTH, Qt.PenStyle.CustomDashLine)
    pen.setDashPattern([float(v) / OUTLINE_WIDTH for v in OUTLINE_DASH])
    painter.setPen(pen)
    painter.setBrush(QBrush(Qt.BrushStyle.NoBrush))
    painter.drawRect(rect)

    painter.setPen(Qt.PenStyle.NoPen)
    handle_brush = QBrush(QColor(OUTLINE_COLOR))
    for r in handle_rects(scene.region, scene.transform, scene.handle_size):
        painter.fillRect(r, handle_brush)


def compose(scene: EditorScene) -> QImage:
    """Render the scene into a new display-sized image."""
    dw, dh = scene.display_size
    surface = QImage(dw, dh, QImage.Format.Format_RGB32)
    surface.fill(QColor(0, 0, 0))
    painter = QPainter(surface)
    try:
        render(painter, scene)
    finally:
        painter.end()
    return surface
