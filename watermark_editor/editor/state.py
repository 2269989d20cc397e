from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from watermark_editor.ops.image_source import ImageInfo
from watermark_editor.ops.removal import RemovalMode, RemovalResult
from watermark_editor.region import Region, ViewTransform


class EditorState(QObject):
    """State observed by the editor widgets.

    Design:
    - Region is stored in image pixel space; the transform maps it for display.
    - Widgets only read; EditorController is the single writer and calls the
      ``_set_*`` helpers, which emit only on actual change.
    """

    imageChanged = Signal(object)
    regionChanged = Signal(object)
    modeChanged = Signal(str)
    fillColorChanged = Signal(str)
    busyChanged = Signal(bool)
    loadingChanged = Signal(bool)
    resultChanged = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._image: ImageInfo | None = None
        self._transform: ViewTransform | None = None
        self._region: Region | None = None
        self._mode = RemovalMode.BLUR
        self._fill_color = "#ffffff"
        self._busy = False
        self._loading = False
        self._result: RemovalResult | None = None

    # ---- read-only accessors (mutate via controller) ----
    @property
    def image(self) -> ImageInfo | None:
        return self._image

    @property
    def transform(self) -> ViewTransform | None:
        return self._transform

    @property
    def region(self) -> Region | None:
        return self._region

    @property
    def mode(self) -> RemovalMode:
        return self._mode

    @property
    def fill_color(self) -> str:
        return self._fill_color

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def result(self) -> RemovalResult | None:
        return self._result

    @property
    def image_size(self) -> tuple[int, int] | None:
        if self._image is None:
            return None
        return (self._image.width, self._image.height)

    # ---- internal mutation helpers (called by controller) ----
    def _set_image(self, image: ImageInfo | None, transform: ViewTransform | None) -> None:
        if image is self._image and transform == self._transform:
            return
        self._image = image
        self._transform = transform
        self.imageChanged.emit(image)

    def _set_region(self, region: Region | None) -> None:
        if region == self._region:
            return
        self._region = region
        self.regionChanged.emit(region)

    def _set_mode(self, mode: RemovalMode) -> None:
        if mode == self._mode:
            return
        self._mode = mode
        self.modeChanged.emit(mode.value)

    def _set_fill_color(self, color: str) -> None:
        if color == self._fill_color:
            return
        self._fill_color = color
        self.fillColorChanged.emit(color)

    def _set_busy(self, value: bool) -> None:
        v = bool(value)
        if v == self._busy:
            return
        self._busy = v
        self.busyChanged.emit(v)

    def _set_loading(self, value: bool) -> None:
        v = bool(value)
        if v == self._loading:
            return
        self._loading = v
        self.loadingChanged.emit(v)

    def _set_result(self, result: RemovalResult | None) -> None:
        if result == self._result:
            return
        self._result = result
        self.resultChanged.emit(result)
