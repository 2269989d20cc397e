import pytest

PySide6 = pytest.importorskip("PySide6")  # noqa: F401

from PySide6.QtCore import QPoint, Qt

from watermark_editor.editor.controller import EditorController
from watermark_editor.editor.ui_canvas import RegionCanvas, cursor_for_mode
from watermark_editor.region import DragMode


@pytest.fixture
def canvas(qtbot, invoker, load_into, make_image_info):
    controller = EditorController(invoker)
    widget = RegionCanvas(controller)
    qtbot.addWidget(widget)
    assert widget.isHidden()

    with qtbot.waitExposed(widget):
        load_into(controller, make_image_info())
    return widget


def test_cursor_for_mode() -> None:
    assert cursor_for_mode(None) == Qt.CursorShape.ArrowCursor
    assert cursor_for_mode(DragMode.MOVE) == Qt.CursorShape.SizeAllCursor
    assert cursor_for_mode(DragMode.CREATE) == Qt.CursorShape.CrossCursor
    assert cursor_for_mode(DragMode.NE) == cursor_for_mode(DragMode.SW) == Qt.CursorShape.SizeBDiagCursor
    assert cursor_for_mode(DragMode.NW) == cursor_for_mode(DragMode.SE) == Qt.CursorShape.SizeFDiagCursor
    assert cursor_for_mode(DragMode.E) == Qt.CursorShape.SizeHorCursor
    assert cursor_for_mode(DragMode.N) == Qt.CursorShape.SizeVerCursor


def test_canvas_takes_display_size(canvas) -> None:
    assert (canvas.width(), canvas.height()) == (560, 420)


def test_canvas_paints_raster(canvas) -> None:
    img = canvas.grab().toImage()
    assert img.pixelColor(10, 10).name() == "#ff0000"


def test_press_and_release_drive_drag_session(canvas, qtbot) -> None:
    controller = canvas._controller

    qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, pos=QPoint(546, 413))
    assert controller.dragging
    assert controller.drag_session.mode is DragMode.SE

    qtbot.mouseRelease(canvas, Qt.MouseButton.LeftButton, pos=QPoint(546, 413))
    assert not controller.dragging


def test_busy_shows_forbidden_cursor(canvas) -> None:
    controller = canvas._controller
    controller.submit()
    try:
        assert canvas.cursor().shape() == Qt.CursorShape.ForbiddenCursor
    finally:
        controller.cancel_submission()
    assert canvas.cursor().shape() == Qt.CursorShape.ArrowCursor
