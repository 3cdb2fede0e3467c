"""Persistent application settings stored as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import platformdirs

from .params import HoughParams, _json_float, _json_int

_log = logging.getLogger(__name__)

DEFAULT_PREVIEW_SIZE = 150
DEFAULT_NM_PER_PIXEL = 0.0


def default_config_dir() -> Path:
    """Return the per-user configuration directory of the application."""
    return platformdirs.user_config_path("CellAnalyzer")


class SettingsManager:
    """Detection parameters, preview size and nm/pixel factor, saved on change."""

    SETTINGS_FILE = "settings.json"

    def __init__(self, config_dir: str | Path | None = None) -> None:
        self.config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
        self._hough_params = HoughParams()
        self._preview_size = DEFAULT_PREVIEW_SIZE
        self._nm_per_pixel = DEFAULT_NM_PER_PIXEL
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            _log.debug("Failed to create settings directory: %s", self.config_dir)
        self.load()

    @property
    def settings_path(self) -> Path:
        return self.config_dir / self.SETTINGS_FILE

    @property
    def hough_params(self) -> HoughParams:
        return self._hough_params

    @hough_params.setter
    def hough_params(self, params: HoughParams) -> None:
        self._hough_params = params
        self.save()

    @property
    def preview_size(self) -> int:
        return self._preview_size

    @preview_size.setter
    def preview_size(self, size: int) -> None:
        self._preview_size = size
        self.save()

    @property
    def nm_per_pixel(self) -> float:
        return self._nm_per_pixel

    @nm_per_pixel.setter
    def nm_per_pixel(self, coefficient: float) -> None:
        self._nm_per_pixel = coefficient
        self.save()

    def save(self) -> None:
        """Write the current settings to the settings file."""
        document = {
            "houghParams": self._hough_params.to_dict(),
            "previewSize": self._preview_size,
            "nmPerPixel": self._nm_per_pixel,
        }
        try:
            self.settings_path.write_text(
                json.dumps(document, indent=4, sort_keys=True), encoding="utf-8"
            )
        except OSError:
            _log.debug("Failed to save settings to: %s", self.settings_path)
            return
        _log.debug("Settings saved to: %s", self.settings_path)

    def load(self) -> None:
        """Read settings from the file, creating it with defaults if it is absent."""
        path = self.settings_path
        if not path.exists():
            _log.debug("Settings file not found, using defaults")
            self.save()
            return
        try:
            data = path.read_text(encoding="utf-8")
        except OSError:
            _log.debug("Failed to load settings from: %s", path)
            return
        try:
            root = json.loads(data)
        except ValueError:
            return
        if not isinstance(root, dict):
            return
        hough = root.get("houghParams")
        if isinstance(hough, dict):
            self._hough_params = HoughParams.from_dict(hough)
        if "previewSize" in root:
            self._preview_size = _json_int(root["previewSize"], DEFAULT_PREVIEW_SIZE)
        if "nmPerPixel" in root:
            self._nm_per_pixel = _json_float(root["nmPerPixel"], DEFAULT_NM_PER_PIXEL)
        _log.debug("Settings loaded from: %s", path)