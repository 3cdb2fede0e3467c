"""Circle geometry helpers and array-to-image conversion."""

from __future__ import annotations

import math

import numpy as np
from PIL import Image


def is_circle_inside_image(x: int, y: int, r: int, width: int, height: int) -> bool:
    """Return whether the circle's bounding square lies wholly inside the image."""
    return x - r >= 0 and y - r >= 0 and x + r < width and y + r < height


def visible_circle_ratio(x: int, y: int, r: int, width: int, height: int) -> float:
    """Estimate the visible share of a circle as the visible part of its
    bounding square divided by the circle's area."""
    visible_left = max(x - r, 0)
    visible_right = min(x + r, width - 1)
    visible_top = max(y - r, 0)
    visible_bottom = min(y + r, height - 1)

    if visible_right < visible_left or visible_bottom < visible_top:
        return 0.0

    circle_area = math.pi * r * r
    visible_area = (visible_right - visible_left + 1) * (visible_bottom - visible_top + 1)
    if circle_area == 0:
        return math.inf
    return visible_area / circle_area


def to_pil_image(array: np.ndarray | None) -> Image.Image | None:
    """Convert a grayscale, BGR or BGRA ``uint8`` array to a PIL image.

    Returns ``None`` for empty or unsupported arrays.
    """
    if array is None:
        return None
    arr = np.asarray(array)
    if arr.size == 0 or arr.dtype != np.uint8:
        return None
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]
    if arr.ndim == 2:
        return Image.fromarray(np.ascontiguousarray(arr))
    if arr.ndim == 3 and arr.shape[2] == 3:
        return Image.fromarray(np.ascontiguousarray(arr[..., ::-1]))
    if arr.ndim == 3 and arr.shape[2] == 4:
        return Image.fromarray(np.ascontiguousarray(arr[..., [2, 1, 0, 3]]))
    return None