from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .image_engine.access_db import DEFAULT_BLOB_COLUMN, DEFAULT_DRIVER, DEFAULT_ID_COLUMN, DEFAULT_QUERY
from .logger import get_logger
from .ops.batch import TrimOptions
from .trim.pixel_buffer import Threshold

_logger = get_logger("settings")


def default_settings_path() -> str:
    return str(Path.home() / ".image_trimmer" / "settings.json")


class SettingsManager:
    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path or default_settings_path()
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "last_dir": None,
        "threshold_r": 250,
        "threshold_g": 250,
        "threshold_b": 250,
        "extension": "png",
        "db_query": DEFAULT_QUERY,
        "id_column": DEFAULT_ID_COLUMN,
        "blob_column": DEFAULT_BLOB_COLUMN,
        "odbc_driver": DEFAULT_DRIVER,
        "make_transparent": False,
        "transparency_from": 250,
        "transparency_to": 255,
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
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path) or ".", exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
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
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def last_dir(self) -> str | None:
        val = self.get("last_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None

    @property
    def threshold(self) -> Threshold:
        try:
            return Threshold(
                int(self.get("threshold_r")), int(self.get("threshold_g")), int(self.get("threshold_b"))
            )
        except (TypeError, ValueError) as e:
            _logger.warning("saved threshold invalid, using default: %s", e)
            return Threshold()

    @property
    def transparency_range(self) -> tuple[int, int]:
        defaults = (self.DEFAULTS["transparency_from"], self.DEFAULTS["transparency_to"])
        try:
            levels = (int(self.get("transparency_from")), int(self.get("transparency_to")))
        except (TypeError, ValueError) as e:
            _logger.warning("saved transparency range invalid, using default: %s", e)
            return defaults
        if not 0 <= levels[0] <= levels[1] <= 255:
            _logger.warning("saved transparency range %d..%d is not within 0..255, using default", *levels)
            return defaults
        return levels

    def trim_options(self) -> TrimOptions:
        transparency_from, transparency_to = self.transparency_range
        return TrimOptions(
            threshold=self.threshold,
            extension=str(self.get("extension") or "png"),
            make_transparent=bool(self.get("make_transparent")),
            transparency_from=transparency_from,
            transparency_to=transparency_to,
        )
