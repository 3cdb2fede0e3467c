"""Hough circle detection parameters and named parameter presets."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import platformdirs

DEFAULT_PRESET_NAME = "По умолчанию"

_FIELD_KEYS = {
    "dp": "dp",
    "min_dist": "minDist",
    "param1": "param1",
    "param2": "param2",
    "min_radius": "minRadius",
    "max_radius": "maxRadius",
}
_INT_FIELDS = {"min_radius", "max_radius"}


def _json_float(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(default)
    return float(value)


def _json_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not value.is_integer():
        return default
    return int(value)


@dataclass(frozen=True)
class HoughParams:
    """Parameters of the Hough gradient circle detector."""

    dp: float = 1.0
    min_dist: float = 30.0
    param1: float = 90.0
    param2: float = 50.0
    min_radius: int = 30
    max_radius: int = 150

    def to_dict(self) -> dict[str, float | int]:
        """Return the parameters under their stored JSON key names."""
        return {key: getattr(self, name) for name, key in _FIELD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HoughParams:
        """Build parameters from stored keys; missing or bad values fall back to defaults."""
        return _from_mapping(data, cls())


def _from_mapping(data: Mapping[str, Any], defaults: HoughParams) -> HoughParams:
    values: dict[str, float | int] = {}
    for f in fields(HoughParams):
        default = getattr(defaults, f.name)
        raw = data.get(_FIELD_KEYS[f.name])
        if f.name in _INT_FIELDS:
            values[f.name] = _json_int(raw, default)
        else:
            values[f.name] = _json_float(raw, default)
    return HoughParams(**values)


# Presets stored without a value fall back to these, not to the detector defaults.
_PRESET_DEFAULTS = HoughParams(param1=80.0, param2=40.0, max_radius=130)


def _default_presets_path() -> Path:
    return platformdirs.user_config_path("HoughParams", "CellAnalyzer") / "presets.json"


class PresetStore:
    """Named parameter sets kept in a JSON file, ordered by name."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_presets_path()
        self._presets: dict[str, HoughParams] = {}

    def load(self) -> None:
        """Replace the stored presets with those in the file, if it exists."""
        self._presets = {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return
        if not isinstance(document, dict):
            return
        entries = document.get("presets")
        if not isinstance(entries, list):
            return
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name", "")
            self._presets[str(name)] = _from_mapping(entry, _PRESET_DEFAULTS)

    def save(self) -> None:
        """Write all presets to the file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "presets": [
                {"name": name, **self._presets[name].to_dict()} for name in self.names()
            ]
        }
        self.path.write_text(json.dumps(document, indent=4, ensure_ascii=False), encoding="utf-8")

    def names(self) -> list[str]:
        """Return preset names in sorted order."""
        return sorted(self._presets)

    def get(self, name: str) -> HoughParams:
        """Return the named preset; raises KeyError if there is none."""
        return self._presets[name]

    def put(self, name: str, params: HoughParams) -> None:
        """Add or replace a preset."""
        self._presets[name] = params

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def __len__(self) -> int:
        return len(self._presets)