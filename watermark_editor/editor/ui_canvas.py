from __future__ import annotations

import contextlib

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QColor, QCursor, QPainter
from PySide6.QtWidgets import QSizePolicy, QWidget

from watermark_editor.logger import get_logger
from watermark_editor.region import DragMode

from .controller import EditorController
from .renderer import render

_logger = get_logger("ui_canvas")

CURSOR_MAP = {
    DragMode.MOVE: Qt.CursorShape.SizeAllCursor,
    DragMode.CREATE: Qt.CursorShape.CrossCursor,
    DragMode.NW: Qt.CursorShape.SizeFDiagCursor,
    DragMode.SE: Qt.CursorShape.SizeFDiagCursor,
    DragMode.NE: Qt.CursorShape.SizeBDiagCursor,
    DragMode.SW: Qt.CursorShape.SizeBDiagCursor,
    DragMode.N: Qt.CursorShape.SizeVerCursor,
    DragMode.S: Qt.CursorShape.SizeVerCursor,
    DragMode.E: Qt.CursorShape.SizeHorCursor,
    DragMode.W: Qt.CursorShape.SizeHorCursor,
}


def cursor_for_mode(mode: DragMode | None) -> Qt.CursorShape:
    if mode is None:
        return Qt.CursorShape.ArrowCursor
    return CURSOR_MAP.get(mode, Qt.CursorShape.ArrowCursor)


class RegionCanvas(QWidget):
    """Display surface for the region editor.

    Paints through the stateless renderer and forwards pointer input to the
    controller; it keeps no geometry of its own.
    """

    def __init__(self, controller: EditorController, parent: QWidget | None = None):
        super().__init__(parent)
        self._controller = controller
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.PreventContextMenu)

        state = controller.state
        state.imageChanged.connect(self._on_image_changed)
        state.regionChanged.connect(self._schedule_repaint)
        state.modeChanged.connect(self._schedule_repaint)
        state.fillColorChanged.connect(self._schedule_repaint)
        state.busyChanged.connect(self._on_busy_changed)
        self._on_image_changed(state.image)

    def sizeHint(self) -> QSize:  # type: ignore[override]
        size = self._controller.display_size()
        if size is None:
            return QSize(0, 0)
        return QSize(*size)

    def _on_image_changed(self, _image) -> None:
        hint = self.sizeHint()
        self.setFixedSize(hint)
        self.setVisible(not hint.isEmpty())
        self.update()

    def _schedule_repaint(self, *_args) -> None:
        self.update()

    def _on_busy_changed(self, busy: bool) -> None:
        self._set_cursor_shape(Qt.CursorShape.ForbiddenCursor if busy else Qt.CursorShape.ArrowCursor)

    def _set_cursor_shape(self, shape: Qt.CursorShape) -> None:
        with contextlib.suppress(Exception):
            if self.cursor().shape() != shape:
                self.setCursor(QCursor(shape))

    def paintEvent(self, event) -> None:  # type: ignore
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            scene = self._controller.scene()
            if scene is None:
                painter.fillRect(self.rect(), QColor(240, 240, 240))
                return
            render(painter, scene)
        finally:
            painter.end()

    def mousePressEvent(self, event) -> None:  # type: ignore
        pos = event.position()
        if self._controller.pointer_press(pos.x(), pos.y(), event.button()):
            event.accept()
        else:
            super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore
        pos = event.position()
        if self._controller.dragging:
            self._controller.pointer_move(pos.x(), pos.y())
        elif not self._controller.state.busy:
            self._set_cursor_shape(cursor_for_mode(self._controller.cursor_mode_at(pos.x(), pos.y())))
        event.accept()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore
        if event.button() == Qt.MouseButton.LeftButton:
            self._controller.pointer_release()
        event.accept()

    def leaveEvent(self, event) -> None:  # type: ignore
        self._controller.pointer_leave()
        super().leaveEvent(event)
