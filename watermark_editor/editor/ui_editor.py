"""Watermark editor window.

Left: the image surface with the region editor. Right: removal mode, fill
color controls and the actions that hand the region to the removal backend.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QColorDialog,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from watermark_editor.busy_cursor import BusyCursor
from watermark_editor.logger import get_logger
from watermark_editor.ops.image_source import SUPPORTED_EXTENSIONS
from watermark_editor.ops.removal import RemovalMode
from watermark_editor.settings_manager import SettingsManager

from .controller import EditorController
from .ui_canvas import RegionCanvas

if TYPE_CHECKING:
    from PySide6.QtGui import QKeyEvent

_logger = get_logger("ui_editor")

IMAGE_FILTER = "Images ({});;All Files (*.*)".format(" ".join(f"*.{ext}" for ext in SUPPORTED_EXTENSIONS))
SWATCH_STYLE = "background-color: {color}; border: 2px solid {border}; border-radius: 3px;"


class WatermarkEditorWindow(QMainWindow):
    def __init__(self, controller: EditorController, settings: SettingsManager | None = None):
        super().__init__()
        self.setWindowTitle("Watermark Remover")
        self.setAcceptDrops(True)

        self._controller = controller
        self._settings = settings
        self._busy_cursor = BusyCursor()
        self._palette_buttons: dict[str, QPushButton] = {}

        self._setup_ui()
        self._connect_state()

        state = controller.state
        self._sync_mode(state.mode.value)
        self._sync_fill_color(state.fill_color)
        self._on_image_changed(state.image)
        _logger.debug("editor window created")

    # ---- layout ----
    def _setup_ui(self) -> None:
        central = QWidget()
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(10)

        main_layout.addWidget(self._create_image_panel(), stretch=1)

        self._right_panel = self._create_right_panel()
        main_layout.addWidget(self._right_panel, stretch=0)

        self.setCentralWidget(central)
        self.setMinimumSize(820, 520)

    def _create_image_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        self.open_btn = QPushButton("Drop an image here or click to choose")
        self.open_btn.setMinimumHeight(64)
        self.open_btn.clicked.connect(self._on_open)
        layout.addWidget(self.open_btn)

        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        self.status_label.setStyleSheet("color: #cf1322;")
        layout.addWidget(self.status_label)

        self.canvas = RegionCanvas(self._controller)
        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignCenter)

        self.hint_label = QLabel()
        self.hint_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.hint_label.setStyleSheet("color: gray;")
        layout.addWidget(self.hint_label)

        layout.addStretch()
        return panel

    def _create_right_panel(self) -> QWidget:
        panel = QWidget()
        panel.setMinimumWidth(200)
        panel.setMaximumWidth(240)
        panel.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Expanding)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(QLabel("Removal Mode:"))

        self.blur_btn = QPushButton("Blur")
        self.blur_btn.setCheckable(True)
        self.blur_btn.clicked.connect(lambda: self._controller.set_mode(RemovalMode.BLUR))
        layout.addWidget(self.blur_btn)

        self.fill_btn = QPushButton("Fill with Color")
        self.fill_btn.setCheckable(True)
        self.fill_btn.clicked.connect(lambda: self._controller.set_mode(RemovalMode.FILL))
        layout.addWidget(self.fill_btn)

        layout.addSpacing(12)

        self._fill_panel = QWidget()
        fill_layout = QVBoxLayout(self._fill_panel)
        fill_layout.setContentsMargins(0, 0, 0, 0)
        fill_layout.addWidget(QLabel("Fill Color:"))

        color_row = QHBoxLayout()
        self.swatch_btn = QPushButton()
        self.swatch_btn.setFixedSize(36, 36)
        self.swatch_btn.setToolTip("Choose a color")
        self.swatch_btn.clicked.connect(self._on_pick_color)
        color_row.addWidget(self.swatch_btn)

        self.color_edit = QLineEdit()
        self.color_edit.setPlaceholderText("#ffffff")
        self.color_edit.editingFinished.connect(self._on_color_edited)
        color_row.addWidget(self.color_edit)
        fill_layout.addLayout(color_row)

        palette_row = QHBoxLayout()
        palette_row.setSpacing(4)
        palette = self._settings.fill_palette if self._settings is not None else SettingsManager.DEFAULTS["fill_palette"]
        for color in palette:
            btn = QPushButton()
            btn.setFixedSize(22, 22)
            btn.setToolTip(color)
            btn.clicked.connect(lambda checked=False, c=color: self._controller.pick_palette_color(c))
            palette_row.addWidget(btn)
            self._palette_buttons[color] = btn
        palette_row.addStretch()
        fill_layout.addLayout(palette_row)

        sample_hint = QLabel("Right-click the image to pick a color")
        sample_hint.setStyleSheet("color: gray;")
        sample_hint.setWordWrap(True)
        fill_layout.addWidget(sample_hint)
        layout.addWidget(self._fill_panel)

        layout.addSpacing(12)

        self.size_label = QLabel()
        layout.addWidget(self.size_label)

        self.result_label = QLabel()
        self.result_label.setWordWrap(True)
        self.result_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(self.result_label)

        layout.addStretch()

        self.remove_btn = QPushButton("Remove Watermark")
        self.remove_btn.clicked.connect(self._on_remove)
        layout.addWidget(self.remove_btn)

        self.batch_btn = QPushButton("Apply to Files...")
        self.batch_btn.setToolTip("Apply the same region to other images")
        self.batch_btn.clicked.connect(self._on_batch)
        layout.addWidget(self.batch_btn)

        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self._controller.cancel_submission)
        self.cancel_btn.setVisible(False)
        layout.addWidget(self.cancel_btn)

        self.reselect_btn = QPushButton("Choose Another Image")
        self.reselect_btn.clicked.connect(self._controller.clear_image)
        layout.addWidget(self.reselect_btn)

        return panel

    def _connect_state(self) -> None:
        state = self._controller.state
        state.imageChanged.connect(self._on_image_changed)
        state.regionChanged.connect(self._update_size_label)
        state.modeChanged.connect(self._sync_mode)
        state.fillColorChanged.connect(self._sync_fill_color)
        state.busyChanged.connect(self._on_busy_changed)
        state.loadingChanged.connect(self._on_loading_changed)
        state.resultChanged.connect(self._show_result)
        self._controller.error_occurred.connect(self._on_error)
        self._controller.batch_finished.connect(self._on_batch_finished)

    # ---- state -> widgets ----
    def _on_image_changed(self, image) -> None:
        has_image = image is not None
        self._right_panel.setVisible(has_image)
        self.hint_label.setVisible(has_image)
        self.open_btn.setVisible(not has_image)
        if has_image:
            self.setWindowTitle(f"Watermark Remover - {image.path}")
        else:
            self.setWindowTitle("Watermark Remover")
        self.status_label.setText("")
        self._update_hint()
        self._update_size_label(self._controller.state.region)

    def _update_size_label(self, region) -> None:
        if region is None:
            self.size_label.setText("")
            return
        self.size_label.setText(f"Region: {region.w} × {region.h}")

    def _update_hint(self) -> None:
        text = "Drag to select the watermark · drag edges or corners to resize"
        if self._controller.state.mode is RemovalMode.FILL:
            text += " · right-click to pick a color"
        self.hint_label.setText(text)

    def _sync_mode(self, mode: str) -> None:
        is_fill = mode == RemovalMode.FILL.value
        self.blur_btn.setChecked(not is_fill)
        self.fill_btn.setChecked(is_fill)
        self._fill_panel.setVisible(is_fill)
        self._update_hint()

    def _sync_fill_color(self, color: str) -> None:
        if self.color_edit.text() != color:
            self.color_edit.setText(color)
        self.swatch_btn.setStyleSheet(SWATCH_STYLE.format(color=color, border="#d0d0d0"))
        for c, btn in self._palette_buttons.items():
            border = "#1677ff" if c == color.lower() else "#d0d0d0"
            btn.setStyleSheet(SWATCH_STYLE.format(color=c, border=border))

    def _on_busy_changed(self, busy: bool) -> None:
        self._busy_cursor.set_busy(busy)
        for w in (self.blur_btn, self.fill_btn, self._fill_panel, self.batch_btn, self.reselect_btn):
            w.setEnabled(not busy)
        self.remove_btn.setEnabled(not busy)
        self.remove_btn.setText("Processing..." if busy else "Remove Watermark")
        self.cancel_btn.setVisible(busy)

    def _on_loading_changed(self, loading: bool) -> None:
        self.open_btn.setEnabled(not loading)
        self.open_btn.setText("Loading..." if loading else "Drop an image here or click to choose")

    def _show_result(self, result) -> None:
        if result is None:
            self.result_label.setText("")
            return
        if result.success:
            self.result_label.setStyleSheet("color: #389e0d;")
            self.result_label.setText(f"✓ {result.message}")
        else:
            self.result_label.setStyleSheet("color: #cf1322;")
            self.result_label.setText(result.message)

    def _on_error(self, message: str) -> None:
        self.status_label.setText(message)
        QMessageBox.warning(self, "Cannot Open Image", message)

    def _on_batch_finished(self, results: list) -> None:
        failed = [r.message for r in results if not r.success]
        if failed:
            QMessageBox.warning(self, "Some Files Failed", "\n".join(failed))

    # ---- widgets -> controller ----
    def _on_open(self) -> None:
        start_dir = self._settings.last_open_dir if self._settings is not None else None
        path, _ = QFileDialog.getOpenFileName(self, "Select Image", start_dir or "", IMAGE_FILTER)
        if not path:
            _logger.debug("open cancelled by user")
            return
        self._controller.load_image(path)

    def _on_batch(self) -> None:
        start_dir = self._settings.last_open_dir if self._settings is not None else None
        paths, _ = QFileDialog.getOpenFileNames(self, "Apply Region to Files", start_dir or "", IMAGE_FILTER)
        if not paths:
            return
        self._controller.submit_batch(paths)

    def _on_remove(self) -> None:
        self._controller.submit()

    def _on_color_edited(self) -> None:
        if not self._controller.set_fill_color(self.color_edit.text()):
            self.color_edit.setText(self._controller.state.fill_color)

    def _on_pick_color(self) -> None:
        color = QColorDialog.getColor(QColor(self._controller.state.fill_color), self, "Fill Color")
        if color.isValid():
            self._controller.set_fill_color(color.name())

    # ---- drag and drop ----
    def dragEnterEvent(self, event) -> None:  # type: ignore
        mime = event.mimeData()
        if mime.hasUrls() and any(u.isLocalFile() for u in mime.urls()):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event) -> None:  # type: ignore
        paths = [u.toLocalFile() for u in event.mimeData().urls() if u.isLocalFile()]
        if not paths:
            event.ignore()
            return
        event.acceptProposedAction()
        _logger.debug("dropped: %s", paths[0])
        self._controller.load_image(paths[0])

    def keyPressEvent(self, arg__1: QKeyEvent) -> None:  # type: ignore
        event = arg__1
        if event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter) and not self.color_edit.hasFocus():
            self._controller.submit()
        elif event.key() == Qt.Key.Key_Escape and self._controller.state.busy:
            self._controller.cancel_submission()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore
        with contextlib.suppress(Exception):
            self._controller.cancel_submission()
        self._busy_cursor.set_busy(False)
        super().closeEvent(event)
