import contextlib
import logging
import os
import sys

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _CategoryFilter(logging.Filter):
    """Pass only records whose logger suffix is in ``allowed``.

    Record names look like ``watermark_editor.controller``; the category is the
    last dotted part.
    """

    def __init__(self, allowed: set[str]):
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        parts = (record.name or "").split(".")
        suffix = parts[-1] if parts else record.name
        return suffix in self.allowed


class _FilteredStderr:
    """Wrap stderr and drop the noisy 'FIXME qt_isinstance' lines PySide6 prints.

    Dropped lines are appended to ``out_path`` so nothing is lost.
    """

    def __init__(self, orig, out_path: str):
        self._orig = orig
        self._out_path = out_path
        self._filtered_by_watermark_editor = True

    def write(self, s: str) -> None:  # pragma: no cover - thin wrapper
        if isinstance(s, str) and "FIXME qt_isinstance" in s:
            with contextlib.suppress(Exception), open(self._out_path, "a", encoding="utf-8") as f:
                f.write(s)
            return
        with contextlib.suppress(Exception):
            self._orig.write(s)

    def flush(self) -> None:  # pragma: no cover - thin wrapper
        with contextlib.suppress(Exception):
            getattr(self._orig, "flush", lambda: None)()

    def isatty(self) -> bool:  # pragma: no cover - thin wrapper
        try:
            return getattr(self._orig, "isatty", lambda: False)()
        except Exception:
            return False


def _unwrap_stream(stream):
    return getattr(stream, "_orig", stream)


def setup_logger(level: int = logging.INFO, name: str = "watermark_editor") -> logging.Logger:
    """Create or update the project logger.

    - Respects WATERMARK_EDITOR_LOG_LEVEL / WATERMARK_EDITOR_LOG_CATS on every call,
      so options parsed late on the command line still take effect.
    - Keeps exactly one stderr StreamHandler on the base logger and refreshes
      its formatter and filters instead of adding another.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv("WATERMARK_EDITOR_LOG_LEVEL") or "").strip().lower()
    if env_level:
        level = _LEVELS.get(env_level, level)
    logger.setLevel(level)

    # Session logs are not written to disk; stderr only.
    stream_handler: logging.StreamHandler | None = None
    for h in list(logger.handlers):
        if isinstance(h, logging.StreamHandler) and _unwrap_stream(getattr(h, "stream", None)) is _unwrap_stream(
            sys.stderr
        ):
            stream_handler = h

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        logger.addHandler(stream_handler)

    stream_handler.setFormatter(
        logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    stream_handler.filters.clear()
    cats = (os.getenv("WATERMARK_EDITOR_LOG_CATS") or "").strip()
    if cats:
        allowed = {c.strip() for c in cats.split(",") if c.strip()}
        stream_handler.addFilter(_CategoryFilter(allowed))

    # Opt out with WATERMARK_EDITOR_FILTER_QT_FIXME=0
    env = os.getenv("WATERMARK_EDITOR_FILTER_QT_FIXME")
    enabled = True if env is None else env.strip().lower() in ("1", "true", "yes")
    if enabled and not getattr(sys.stderr, "_filtered_by_watermark_editor", False):
        sys.stderr = _FilteredStderr(sys.stderr, os.path.join(os.getcwd(), "debug.log.filtered"))

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
