import pytest

PySide6 = pytest.importorskip("PySide6")  # noqa: F401

from PySide6.QtCore import QMimeData, QPointF, Qt, QUrl
from PySide6.QtGui import QDropEvent

from watermark_editor.editor.controller import EditorController
from watermark_editor.editor.ui_editor import WatermarkEditorWindow
from watermark_editor.errors import RemovalError
from watermark_editor.ops.removal import RemovalMode


@pytest.fixture
def window(qtbot, invoker):
    controller = EditorController(invoker)
    win = WatermarkEditorWindow(controller)
    qtbot.addWidget(win)
    return win


@pytest.fixture
def loaded(window, load_into, make_image_info):
    load_into(window._controller, make_image_info())
    return window


def test_starts_with_open_prompt(window) -> None:
    assert window._right_panel.isHidden()
    assert not window.open_btn.isHidden()


def test_loaded_image_shows_controls_and_size(loaded) -> None:
    assert not loaded._right_panel.isHidden()
    assert loaded.open_btn.isHidden()
    assert loaded.size_label.text() == "Region: 100 × 30"
    assert loaded.blur_btn.isChecked()
    assert loaded._fill_panel.isHidden()


def test_mode_buttons_switch_mode(loaded) -> None:
    controller = loaded._controller
    loaded.fill_btn.click()
    assert controller.state.mode is RemovalMode.FILL
    assert loaded.fill_btn.isChecked() and not loaded.blur_btn.isChecked()
    assert not loaded._fill_panel.isHidden()
    assert "right-click" in loaded.hint_label.text()

    loaded.blur_btn.click()
    assert controller.state.mode is RemovalMode.BLUR
    assert "right-click" not in loaded.hint_label.text()


def test_invalid_hex_entry_is_reverted(loaded) -> None:
    loaded.color_edit.setText("bogus")
    loaded.color_edit.editingFinished.emit()
    assert loaded.color_edit.text() == "#ffffff"

    loaded.color_edit.setText("#0F0")
    loaded.color_edit.editingFinished.emit()
    assert loaded._controller.state.fill_color == "#00ff00"
    assert loaded.color_edit.text() == "#00ff00"


def test_palette_button_sets_fill_color(loaded) -> None:
    loaded._palette_buttons["#000000"].click()
    assert loaded._controller.state.fill_color == "#000000"
    assert loaded.color_edit.text() == "#000000"


def test_remove_button_locks_controls_until_done(loaded, fake_pool, qtbot) -> None:
    loaded.remove_btn.click()
    assert loaded.remove_btn.text() == "Processing..."
    assert not loaded.remove_btn.isEnabled()
    assert not loaded.blur_btn.isEnabled()
    assert not loaded.cancel_btn.isHidden()

    _, _, future = fake_pool.last
    with qtbot.waitSignal(loaded._controller.state.resultChanged, timeout=2000):
        future.set_exception(RemovalError("disk full"))

    assert loaded.remove_btn.text() == "Remove Watermark"
    assert loaded.remove_btn.isEnabled()
    assert "disk full" in loaded.result_label.text()


def test_choose_another_image_clears_editor(loaded) -> None:
    loaded.reselect_btn.click()
    assert loaded._controller.state.image is None
    assert loaded._right_panel.isHidden()
    assert loaded.size_label.text() == ""


def test_drop_loads_first_local_file(window, fake_pool, tmp_path) -> None:
    path = tmp_path / "dropped.webp"
    mime = QMimeData()
    mime.setUrls([QUrl.fromLocalFile(str(path))])
    event = QDropEvent(
        QPointF(5, 5), Qt.DropAction.CopyAction, mime, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier
    )

    window.dropEvent(event)

    _, kwargs, _ = fake_pool.last
    assert kwargs["path"] == str(path)
    assert window._controller.state.loading
