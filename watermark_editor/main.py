import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from watermark_editor.logger import get_logger

# --- CLI logging options -----------------------------------------------------
# Qt rejects unknown options, so ours are parsed first, reflected in
# WATERMARK_EDITOR_LOG_LEVEL / WATERMARK_EDITOR_LOG_CATS and removed from argv.


def _apply_cli_logging_options(argv: list[str] | None = None) -> list[str]:
    import argparse

    if argv is None:
        argv = sys.argv
    parser = argparse.ArgumentParser(description="Watermark Remover", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv[1:])
    if args.log_level:
        os.environ["WATERMARK_EDITOR_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["WATERMARK_EDITOR_LOG_CATS"] = args.log_cats
    argv[:] = [argv[0], *remaining]
    return argv


def _parse_start_path(argv: list[str]) -> Path | None:
    import argparse

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("start_path", nargs="?", help="Image file to open")
    args, _ = parser.parse_known_args(argv[1:])
    return Path(args.start_path) if args.start_path else None


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    from watermark_editor.editor.controller import EditorController
    from watermark_editor.editor.ui_editor import WatermarkEditorWindow
    from watermark_editor.ops.invoker import OperationInvoker
    from watermark_editor.settings_manager import SettingsManager, default_settings_path

    argv = _apply_cli_logging_options(list(sys.argv if argv is None else argv))
    logger = get_logger("main")
    start_path = _parse_start_path(argv)

    app = QApplication(argv)
    settings = SettingsManager(default_settings_path())
    invoker = OperationInvoker()
    controller = EditorController(invoker, settings)
    window = WatermarkEditorWindow(controller, settings)
    window.show()

    if start_path is not None:
        if start_path.is_file():
            controller.load_image(str(start_path))
        else:
            logger.warning("start path is not a file: %s", start_path)

    try:
        return app.exec()
    finally:
        invoker.shutdown()


if __name__ == "__main__":
    sys.exit(run())
