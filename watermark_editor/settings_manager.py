from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from PySide6.QtGui import QColor

from .logger import get_logger

_logger = get_logger("settings")


def default_settings_path() -> str:
    env = (os.getenv("WATERMARK_EDITOR_SETTINGS") or "").strip()
    if env:
        return env
    return str(Path.home() / ".watermark_editor" / "settings.json")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "max_display_width": 560,
        "max_display_height": 420,
        "hit_margin": 10,
        "handle_size": 8,
        "fill_palette": ["#ffffff", "#f5f5f5", "#e8e8e8", "#f0f0f0", "#000000"],
        "default_mode": "blur",
        "default_fill_color": "#ffffff",
        "ffmpeg_path": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        if key == "last_open_dir" and isinstance(value, str) and value:
            value = _normalize_dir(value)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def last_open_dir(self) -> str | None:
        val = self.get("last_open_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None

    @property
    def fill_palette(self) -> list[str]:
        """Palette swatches as normalized ``#rrggbb`` strings; invalid entries are skipped."""
        out: list[str] = []
        raw = self.get("fill_palette")
        if not isinstance(raw, list):
            raw = self.DEFAULTS["fill_palette"]
        for item in raw:
            color = QColor(str(item))
            if color.isValid():
                out.append(color.name())
            else:
                _logger.warning("palette color invalid: %s", item)
        return out

    def determine_default_fill_color(self) -> str:
        hexcol = self.get("default_fill_color")
        if isinstance(hexcol, str):
            color = QColor(hexcol)
            if color.isValid():
                return color.name()
            _logger.warning("saved default_fill_color invalid: %s", hexcol)
        return "#ffffff"


def _normalize_dir(value: str) -> str:
    p = Path(value).expanduser().resolve()
    if p.is_file():
        p = p.parent
    return str(p)
