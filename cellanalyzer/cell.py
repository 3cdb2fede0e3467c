"""A detected cell: its circle, cropped image and measured diameters."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import numpy as np


@dataclass
class Cell:
    """One cell found in a micrograph.

    ``circle`` holds the centre and radius ``(x, y, r)`` in source pixels,
    ``image`` the cropped fragment (BGR, grayscale or BGRA ``uint8`` array).
    """

    circle: tuple[float, float, float] = (0.0, 0.0, 0.0)
    image: np.ndarray | None = field(default=None, repr=False, compare=False)
    diameter_px: float = 0.0
    diameter_nm: float = 0.0
    pixel_diameter: int = 0
    image_path: str = ""

    def copy(self) -> Cell:
        """Return a copy whose image does not share memory with this one."""
        image = None
        if self.image is not None and self.image.size > 0:
            image = self.image.copy()
        return replace(self, image=image)

    def rounded_circle(self) -> tuple[int, int, int]:
        """Return the circle's centre and radius rounded to whole pixels."""
        x, y, r = self.circle
        return round(x), round(y), round(r)