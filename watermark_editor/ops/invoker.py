"""Named-operation boundary between the editor and its processing backend.

Operations run on a thread pool; completions are reported through the
``finished`` signal as ``(ticket, name, result, error)``. Callers keep the
ticket of the request they still care about and drop anything else.
"""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from PySide6.QtCore import QObject, Signal

from watermark_editor.errors import UnknownOperationError
from watermark_editor.logger import get_logger

from .image_source import get_image_info
from .removal import remove_watermark, remove_watermark_batch

_logger = get_logger("invoker")

GET_IMAGE_INFO = "get_image_info"
REMOVE_WATERMARK = "remove_watermark"
REMOVE_WATERMARK_BATCH = "remove_watermark_batch"


def default_operations() -> dict[str, Callable[..., Any]]:
    return {
        GET_IMAGE_INFO: get_image_info,
        REMOVE_WATERMARK: remove_watermark,
        REMOVE_WATERMARK_BATCH: remove_watermark_batch,
    }


class OperationInvoker(QObject):
    """Run registered operations off the UI thread."""

    finished = Signal(int, str, object, object)  # ticket, name, result, error

    def __init__(
        self,
        operations: Mapping[str, Callable[..., Any]] | None = None,
        max_workers: int = 2,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._operations: dict[str, Callable[..., Any]] = dict(
            operations if operations is not None else default_operations()
        )
        self.pool = ThreadPoolExecutor(max_workers=max_workers)
        self._next_ticket = 1
        self._futures: dict[int, Future] = {}
        self._cancelled: set[int] = set()
        self._lock = threading.Lock()

    def register(self, name: str, fn: Callable[..., Any]) -> None:
        self._operations[name] = fn

    def has_operation(self, name: str) -> bool:
        return name in self._operations

    def invoke(self, name: str, **kwargs: Any) -> int:
        """Queue ``name(**kwargs)`` and return its ticket.

        Raises:
            UnknownOperationError: nothing is registered under ``name``.
        """
        fn = self._operations.get(name)
        if fn is None:
            raise UnknownOperationError(f"Unknown operation: {name}")

        with self._lock:
            ticket = self._next_ticket
            self._next_ticket += 1
        _logger.debug("invoke: name=%s ticket=%d", name, ticket)

        future = self.pool.submit(fn, **kwargs)
        with self._lock:
            self._futures[ticket] = future
        future.add_done_callback(lambda f, t=ticket, n=name: self._on_done(t, n, f))
        return ticket

    def _on_done(self, ticket: int, name: str, future: Future) -> None:
        with self._lock:
            self._futures.pop(ticket, None)
            cancelled = ticket in self._cancelled
            self._cancelled.discard(ticket)
        if cancelled or future.cancelled():
            _logger.debug("operation finished after cancel: name=%s ticket=%d (dropped)", name, ticket)
            return

        try:
            result = future.result()
        except Exception as e:
            _logger.warning("operation failed: name=%s ticket=%d: %s", name, ticket, e)
            self.finished.emit(ticket, name, None, str(e))
            return
        _logger.debug("operation finished: name=%s ticket=%d", name, ticket)
        self.finished.emit(ticket, name, result, None)

    def cancel(self, ticket: int) -> None:
        """Best-effort cancel; a running operation completes but its result is dropped."""
        with self._lock:
            future = self._futures.get(ticket)
            if future is None:
                return
            self._cancelled.add(ticket)
        with contextlib.suppress(Exception):
            future.cancel()
        _logger.debug("cancel requested: ticket=%d", ticket)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._futures)

    def shutdown(self) -> None:
        self.pool.shutdown(wait=False, cancel_futures=True)
