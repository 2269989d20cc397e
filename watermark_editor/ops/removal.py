"""Watermark removal through the external ffmpeg binary.

This module only builds filter arguments for the region and runs ffmpeg;
the pixel work (blur or solid fill) happens in the ffmpeg process.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path

from watermark_editor.errors import RemovalError
from watermark_editor.logger import get_logger

_logger = get_logger("removal")

BLUR_FILTER = "boxblur=15:3"
OUTPUT_SUFFIX = "_no_watermark"


class RemovalMode(str, Enum):
    BLUR = "blur"
    FILL = "fill"


@dataclass(frozen=True, slots=True)
class RemovalRequest:
    """Parameters for one removal call, region in image pixels."""

    input_path: str
    x: int
    y: int
    width: int
    height: int
    color: str
    mode: RemovalMode

    def to_kwargs(self) -> dict[str, object]:
        kwargs = asdict(self)
        kwargs["mode"] = self.mode.value
        return kwargs


@dataclass(frozen=True, slots=True)
class RemovalResult:
    success: bool
    output_path: str
    message: str


def resolve_ffmpeg(configured: str | None = None) -> str:
    """Locate ffmpeg: env override, then the configured path, then PATH."""
    for candidate in (os.getenv("WATERMARK_EDITOR_FFMPEG"), configured):
        if candidate and os.path.isfile(candidate):
            return candidate
    found = shutil.which("ffmpeg")
    if found is None:
        raise RemovalError("ffmpeg not found; install it or set WATERMARK_EDITOR_FFMPEG")
    return found


def output_path_for(input_path: str) -> str:
    p = Path(input_path)
    return str(p.with_name(f"{p.stem}{OUTPUT_SUFFIX}{p.suffix}"))


def ffmpeg_color(color: str) -> str:
    """``#rrggbb`` -> ``0xrrggbb``; other spellings pass through."""
    return f"0x{color[1:]}" if color.startswith("#") else color


def build_filter_args(x: int, y: int, width: int, height: int, color: str, mode: RemovalMode) -> list[str]:
    if mode is RemovalMode.BLUR:
        graph = (
            f"[0:v]crop={width}:{height}:{x}:{y}[crop];"
            f"[crop]{BLUR_FILTER}[blur];"
            f"[0:v][blur]overlay={x}:{y}"
        )
        return ["-filter_complex", graph]
    return ["-vf", f"drawbox=x={x}:y={y}:w={width}:h={height}:color={ffmpeg_color(color)}:t=fill"]


def remove_watermark(
    input_path: str,
    x: int,
    y: int,
    width: int,
    height: int,
    color: str = "#ffffff",
    mode: str = "blur",
    ffmpeg_path: str | None = None,
) -> RemovalResult:
    """Blur or fill the rectangle in ``input_path`` and write ``<stem>_no_watermark.<ext>``.

    Raises:
        RemovalError: missing input, empty region, missing ffmpeg or ffmpeg failure.
    """
    if not os.path.isfile(input_path):
        raise RemovalError(f"File not found: {input_path}")
    if width <= 0 or height <= 0:
        raise RemovalError(f"Invalid region size: {width}x{height}")
    try:
        removal_mode = RemovalMode(mode)
    except ValueError as e:
        raise RemovalError(f"Unknown removal mode: {mode}") from e

    ffmpeg = resolve_ffmpeg(ffmpeg_path)
    output_path = output_path_for(input_path)
    cmd = [
        ffmpeg,
        "-y",
        "-i",
        input_path,
        *build_filter_args(int(x), int(y), int(width), int(height), color, removal_mode),
        "-q:v",
        "1",
        output_path,
    ]
    _logger.info(
        "removing watermark: %s mode=%s rect=(%d,%d,%d,%d)", input_path, removal_mode.value, x, y, width, height
    )
    _logger.debug("ffmpeg command: %s", cmd)

    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        raise RemovalError(f"Failed to run ffmpeg: {e}") from e

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        _logger.error("ffmpeg failed (%d) for %s: %s", proc.returncode, input_path, stderr)
        raise RemovalError(f"Processing failed: {stderr or f'exit code {proc.returncode}'}")

    _logger.info("watermark removed: %s -> %s", input_path, output_path)
    return RemovalResult(success=True, output_path=output_path, message=f"Saved to: {output_path}")


def remove_watermark_batch(
    input_paths: list[str],
    x: int,
    y: int,
    width: int,
    height: int,
    color: str = "#ffffff",
    mode: str = "blur",
    ffmpeg_path: str | None = None,
) -> list[RemovalResult]:
    """Apply the same region to several files; failures become unsuccessful results."""
    results: list[RemovalResult] = []
    for path in input_paths:
        try:
            results.append(remove_watermark(path, x, y, width, height, color, mode, ffmpeg_path))
        except RemovalError as e:
            _logger.warning("batch item failed: %s: %s", path, e)
            results.append(RemovalResult(success=False, output_path="", message=f"{path}: {e}"))
    return results
