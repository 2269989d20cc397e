"""Pytest configuration.

The editor tests use PySide6 widgets and QObject signals, so a single
`QApplication` is created for the whole session as early as possible and
shut down cleanly at the end.

Also provides a fake executor so operations complete only when a test
resolves their futures.
"""

from __future__ import annotations

import os
from concurrent.futures import Future
from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Headless runs have no display; default Qt to the offscreen platform.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


class FakePool:
    """Executor stand-in: records submissions and never runs them."""

    def __init__(self) -> None:
        self.submits: list[tuple[object, dict, Future]] = []

    def submit(self, fn, /, *args, **kwargs):  # noqa: ANN001
        future: Future = Future()
        self.submits.append((fn, kwargs, future))
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:  # noqa: ARG002
        return None

    @property
    def last(self) -> tuple[object, dict, Future]:
        return self.submits[-1]


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def invoker(fake_pool):
    from watermark_editor.ops.invoker import OperationInvoker

    inv = OperationInvoker()
    inv.pool.shutdown(wait=False)
    inv.pool = fake_pool  # type: ignore[assignment]
    yield inv
    inv.shutdown()


@pytest.fixture
def make_image_info():
    """Build an ``ImageInfo`` with a solid display raster sized for the default 560x420 bounds."""
    import numpy as np

    from watermark_editor.ops.image_source import ImageInfo

    def _make(path: str = "photo.png", width: int = 800, height: int = 600, rgb=(255, 0, 0)) -> ImageInfo:
        scale = min(560 / width, 420 / height, 1.0)
        dw, dh = max(1, round(width * scale)), max(1, round(height * scale))
        thumb = np.zeros((dh, dw, 3), dtype=np.uint8)
        thumb[:, :] = rgb
        return ImageInfo(width=width, height=height, path=path, thumbnail=thumb)

    return _make


@pytest.fixture
def load_into(qtbot, fake_pool):
    """Drive ``controller.load_image`` through to the applied image."""

    def _load(controller, info) -> None:
        controller.load_image(info.path)
        _, _, future = fake_pool.last
        with qtbot.waitSignal(controller.state.imageChanged, timeout=2000):
            future.set_result(info)

    return _load
