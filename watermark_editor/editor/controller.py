"""Editor orchestration.

Bridges pointer input, the region core and the async operation boundary.
All methods run on the UI thread; only ``OperationInvoker`` touches worker
threads, and its completions arrive here through a queued connection.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QColor, QImage

from watermark_editor.logger import get_logger
from watermark_editor.ops.image_source import ImageInfo, is_supported_image
from watermark_editor.ops.invoker import GET_IMAGE_INFO, REMOVE_WATERMARK, REMOVE_WATERMARK_BATCH, OperationInvoker
from watermark_editor.ops.removal import RemovalMode, RemovalRequest, RemovalResult
from watermark_editor.region import HIT_MARGIN, DragMode, DragSession, ViewTransform, default_region, hit_test
from watermark_editor.settings_manager import SettingsManager

from .color_sampler import sample_color
from .renderer import HANDLE_SIZE, EditorScene, compose, qimage_from_array
from .state import EditorState

_logger = get_logger("controller")


def normalize_color(text: str) -> str | None:
    """``#rgb`` / ``#rrggbb`` (any case) -> lowercase ``#rrggbb``; None if unparsable."""
    t = (text or "").strip()
    if not t.startswith("#"):
        return None
    color = QColor(t)
    if not color.isValid():
        return None
    return color.name()


class EditorController(QObject):
    """Owns the editing session for one image at a time."""

    error_occurred = Signal(str)
    batch_finished = Signal(list)  # list[RemovalResult]

    def __init__(
        self,
        invoker: OperationInvoker,
        settings: SettingsManager | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._invoker = invoker
        self._settings = settings
        self.state = EditorState(self)

        self._raster: QImage | None = None
        self._session: DragSession | None = None
        self._load_ticket: int | None = None
        self._remove_ticket: int | None = None
        self._remove_kind: str | None = None

        self._max_display = (
            int(self._setting("max_display_width", 560)),
            int(self._setting("max_display_height", 420)),
        )
        self._hit_margin = float(self._setting("hit_margin", HIT_MARGIN))
        self._handle_size = int(self._setting("handle_size", HANDLE_SIZE))

        try:
            self.state._set_mode(RemovalMode(self._setting("default_mode", "blur")))
        except ValueError:
            _logger.warning("default_mode setting invalid; using blur")
        if settings is not None:
            self.state._set_fill_color(settings.determine_default_fill_color())

        self._invoker.finished.connect(self._on_operation_finished, Qt.ConnectionType.QueuedConnection)

    def _setting(self, key: str, fallback):
        if self._settings is None:
            return fallback
        value = self._settings.get(key)
        return fallback if value is None else value

    # ---- queries ----
    @property
    def dragging(self) -> bool:
        return self._session is not None

    @property
    def drag_session(self) -> DragSession | None:
        return self._session

    @property
    def hit_margin(self) -> float:
        return self._hit_margin

    def scene(self) -> EditorScene | None:
        s = self.state
        if s.image is None or s.transform is None or s.region is None or self._raster is None:
            return None
        return EditorScene(
            raster=self._raster,
            image_size=(s.image.width, s.image.height),
            region=s.region,
            transform=s.transform,
            mode=s.mode,
            fill_color=s.fill_color,
            handle_size=self._handle_size,
        )

    def display_size(self) -> tuple[int, int] | None:
        s = self.state
        if s.image is None or s.transform is None:
            return None
        return s.transform.display_size(s.image.width, s.image.height)

    def cursor_mode_at(self, x: float, y: float) -> DragMode | None:
        """Control under a display point while idle; None when there is nothing to edit."""
        s = self.state
        if s.region is None or s.transform is None or s.busy:
            return None
        return hit_test(x, y, s.region, s.transform, self._hit_margin)

    # ---- pointer input (display coordinates) ----
    def pointer_press(self, x: float, y: float, button=Qt.MouseButton.LeftButton) -> bool:
        s = self.state
        if s.busy or s.region is None or s.transform is None:
            return False

        if button == Qt.MouseButton.RightButton:
            return self.sample_color_at(x, y) is not None

        if button != Qt.MouseButton.LeftButton or self._session is not None:
            return False

        self._session = DragSession.begin((x, y), s.region, s.transform, self._hit_margin)
        _logger.debug("drag begin: mode=%s at (%.1f,%.1f)", self._session.mode.value, x, y)
        return True

    def pointer_move(self, x: float, y: float) -> None:
        session = self._session
        size = self.state.image_size
        if session is None or size is None or self.state.transform is None:
            return
        self.state._set_region(session.update((x, y), self.state.transform, size))

    def pointer_release(self) -> None:
        if self._session is None:
            return
        _logger.debug("drag end: mode=%s region=%s", self._session.mode.value, self.state.region)
        self._session = None

    def pointer_leave(self) -> None:
        self.pointer_release()

    # ---- mode / color ----
    def set_mode(self, mode: RemovalMode | str) -> None:
        if self.state.busy:
            return
        try:
            removal_mode = RemovalMode(mode)
        except ValueError:
            _logger.warning("ignoring unknown removal mode: %r", mode)
            return
        self.state._set_mode(removal_mode)

    def set_fill_color(self, text: str) -> bool:
        if self.state.busy:
            return False
        color = normalize_color(text)
        if color is None:
            _logger.warning("ignoring invalid fill color: %r", text)
            return False
        self.state._set_fill_color(color)
        return True

    def pick_palette_color(self, color: str) -> bool:
        return self.set_fill_color(color)

    def sample_color_at(self, x: float, y: float) -> str | None:
        """Set the fill color from the rendered surface; Fill mode only."""
        if self.state.busy or self.state.mode is not RemovalMode.FILL:
            return None
        scene = self.scene()
        if scene is None:
            return None
        color = sample_color(compose(scene), x, y)
        if color is None:
            return None
        self.state._set_fill_color(color)
        _logger.debug("sampled fill color %s at (%.1f,%.1f)", color, x, y)
        return color

    # ---- image lifecycle ----
    def load_image(self, path: str) -> int | None:
        if not is_supported_image(path):
            msg = f"Unsupported image format: {path}"
            _logger.warning(msg)
            self.error_occurred.emit(msg)
            return None

        if self._load_ticket is not None:
            self._invoker.cancel(self._load_ticket)
        max_w, max_h = self._max_display
        self._load_ticket = self._invoker.invoke(GET_IMAGE_INFO, path=path, max_width=max_w, max_height=max_h)
        self.state._set_loading(True)
        _logger.debug("load requested: %s ticket=%d", path, self._load_ticket)
        return self._load_ticket

    def clear_image(self) -> None:
        if self._load_ticket is not None:
            self._invoker.cancel(self._load_ticket)
            self._load_ticket = None
        self._drop_submission()
        self._session = None
        self._raster = None
        self.state._set_loading(False)
        self.state._set_result(None)
        self.state._set_region(None)
        self.state._set_image(None, None)

    def _apply_image(self, info: ImageInfo) -> None:
        try:
            raster = qimage_from_array(info.thumbnail)
            transform = ViewTransform.fit(info.width, info.height, *self._max_display)
        except ValueError as e:
            self._fail_load(f"Failed to load image: {e}")
            return

        # Results for the previous image no longer apply.
        self._drop_submission()
        self._session = None
        self._raster = raster
        self.state._set_result(None)
        self.state._set_image(info, transform)
        self.state._set_region(default_region(info.width, info.height))
        self.state._set_loading(False)
        if self._settings is not None:
            self._settings.set("last_open_dir", info.path)
        _logger.info("editing %s (%dx%d, scale=%.3f)", info.path, info.width, info.height, transform.scale)

    def _fail_load(self, message: str) -> None:
        self.state._set_loading(False)
        _logger.warning("image load failed: %s", message)
        self.error_occurred.emit(message)

    # ---- removal ----
    def build_request(self) -> RemovalRequest | None:
        s = self.state
        if s.image is None or s.region is None:
            return None
        r = s.region
        return RemovalRequest(
            input_path=s.image.path,
            x=r.x,
            y=r.y,
            width=r.w,
            height=r.h,
            color=s.fill_color,
            mode=s.mode,
        )

    def submit(self) -> int | None:
        request = self.build_request()
        if request is None or self.state.busy:
            return None
        return self._start_submission(REMOVE_WATERMARK, **request.to_kwargs())

    def submit_batch(self, paths: list[str]) -> int | None:
        request = self.build_request()
        if request is None or self.state.busy or not paths:
            return None
        kwargs = request.to_kwargs()
        kwargs.pop("input_path")
        return self._start_submission(REMOVE_WATERMARK_BATCH, input_paths=list(paths), **kwargs)

    def _start_submission(self, name: str, **kwargs) -> int:
        self.pointer_release()
        ffmpeg_path = self._setting("ffmpeg_path", None)
        if ffmpeg_path:
            kwargs["ffmpeg_path"] = ffmpeg_path
        self._remove_ticket = self._invoker.invoke(name, **kwargs)
        self._remove_kind = name
        self.state._set_result(None)
        self.state._set_busy(True)
        _logger.info("submitted %s ticket=%d", name, self._remove_ticket)
        return self._remove_ticket

    def cancel_submission(self) -> None:
        if self._remove_ticket is None:
            return
        _logger.info("submission cancelled: ticket=%d", self._remove_ticket)
        self._drop_submission()

    def _drop_submission(self) -> None:
        if self._remove_ticket is not None:
            self._invoker.cancel(self._remove_ticket)
        self._remove_ticket = None
        self._remove_kind = None
        self.state._set_busy(False)

    # ---- completions ----
    def _on_operation_finished(self, ticket: int, name: str, result: object, error: object) -> None:
        if ticket == self._load_ticket:
            self._load_ticket = None
            if error is not None or not isinstance(result, ImageInfo):
                self._fail_load(str(error) if error is not None else "Failed to load image")
                return
            self._apply_image(result)
            return

        if ticket == self._remove_ticket:
            kind = self._remove_kind
            self._remove_ticket = None
            self._remove_kind = None
            self.state._set_busy(False)
            if kind == REMOVE_WATERMARK_BATCH:
                self._finish_batch(result, error)
            else:
                self._finish_removal(result, error)
            return

        _logger.debug("stale completion dropped: name=%s ticket=%d", name, ticket)

    def _finish_removal(self, result: object, error: object) -> None:
        if error is not None or not isinstance(result, RemovalResult):
            message = str(error) if error is not None else "Removal failed"
            _logger.warning("removal failed: %s", message)
            self.state._set_result(RemovalResult(success=False, output_path="", message=message))
            return
        self.state._set_result(result)

    def _finish_batch(self, result: object, error: object) -> None:
        if error is not None or not isinstance(result, list):
            message = str(error) if error is not None else "Batch removal failed"
            _logger.warning("batch removal failed: %s", message)
            self.state._set_result(RemovalResult(success=False, output_path="", message=message))
            return
        ok = sum(1 for r in result if r.success)
        summary = RemovalResult(
            success=ok == len(result),
            output_path="",
            message=f"{ok}/{len(result)} files processed",
        )
        self.state._set_result(summary)
        self.batch_finished.emit(result)
