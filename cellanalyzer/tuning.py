"""Interactive tuning of Hough circle parameters on a single image."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import numpy as np

from .geometry import is_circle_inside_image
from .params import DEFAULT_PRESET_NAME, HoughParams, PresetStore
from .vision import (
    draw_rectangle,
    hough_circles,
    load_image,
    median_blur,
    put_text,
    to_gray,
)

RED = (0, 0, 255)
GREEN = (0, 255, 0)


class ParameterTuner:
    """Holds one image and the parameters being tried on it."""

    def __init__(self, image_path: str | Path, params: HoughParams | None = None) -> None:
        self.image_path = Path(image_path)
        original = load_image(image_path)
        if original is None:
            raise ValueError(f"Cannot load image: {image_path}")
        self.original = original
        self.gray = to_gray(original)
        self.blurred = median_blur(self.gray, 5)
        self.params = params if params is not None else HoughParams()

    def update(self, **kwargs: float | int) -> HoughParams:
        """Change some parameters by field name and return the new set."""
        self.params = replace(self.params, **kwargs)
        return self.params

    def detect(self) -> list[tuple[float, float, float]]:
        """Run circle detection on the blurred image with the current parameters."""
        p = self.params
        return hough_circles(
            self.blurred,
            p.dp,
            p.min_dist,
            p.param1,
            p.param2,
            p.min_radius,
            p.max_radius,
        )

    def render_preview(self) -> np.ndarray:
        """Return a copy of the image with detected circles boxed and their count written."""
        preview = self.original.copy()
        circles = self.detect()
        h, w = preview.shape[:2]
        for cx, cy, cr in circles:
            x, y, r = round(cx), round(cy), round(cr)
            if is_circle_inside_image(x, y, r, w, h):
                draw_rectangle(preview, x - r, y - r, 2 * r, 2 * r, RED, 2)
        put_text(preview, f"Circles found: {len(circles)}", 10, 30, GREEN, 1.0)
        return preview

    def apply_preset(self, name: str, presets: PresetStore) -> HoughParams:
        """Switch to the named preset; the default name restores detector defaults.

        An unknown name leaves the parameters unchanged.
        """
        if name == DEFAULT_PRESET_NAME:
            self.params = HoughParams()
        elif name in presets:
            self.params = presets.get(name)
        return self.params

    def save_preset(self, name: str, presets: PresetStore, overwrite: bool = False) -> bool:
        """Store the current parameters under a name and write the presets file.

        Returns False without saving for an empty name, or for an existing
        name when ``overwrite`` is false.
        """
        if not name:
            return False
        if name in presets and not overwrite:
            return False
        presets.put(name, self.params)
        presets.save()
        return True