"""Detection of cells in micrographs and estimation of the image scale."""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from .cell import Cell
from .geometry import visible_circle_ratio
from .params import HoughParams
from .vision import (
    canny,
    draw_rectangle,
    hough_circles,
    hough_lines_p,
    load_image,
    median_blur,
    save_image,
    to_gray,
)

DEBUG_IMAGE = "debug_cells_highlighted.png"
CROP_PADDING = 30
MIN_VISIBLE_RATIO = 0.6
DEFAULT_SCALE_NM = 100.0
RED = (0, 0, 255)

Line = tuple[int, int, int, int]
_NUMBER = re.compile(r"\d+\.?\d*|\.\d+")


def extract_cells(
    image: np.ndarray, circles: Iterable[Sequence[float]], path: str
) -> list[Cell]:
    """Crop each sufficiently visible circle with padding into a Cell."""
    h, w = image.shape[:2]
    cells = []
    for c in circles:
        circle = (float(c[0]), float(c[1]), float(c[2]))
        x, y, r = round(circle[0]), round(circle[1]), round(circle[2])
        if visible_circle_ratio(x, y, r, w, h) < MIN_VISIBLE_RATIO:
            continue
        roi_x = max(x - r - CROP_PADDING, 0)
        roi_y = max(y - r - CROP_PADDING, 0)
        roi_w = min(2 * r + 2 * CROP_PADDING, w - roi_x)
        roi_h = min(2 * r + 2 * CROP_PADDING, h - roi_y)
        crop = image[roi_y : roi_y + max(roi_h, 0), roi_x : roi_x + max(roi_w, 0)].copy()
        cells.append(
            Cell(circle=circle, image=crop, diameter_px=float(2 * r), image_path=path)
        )
    return cells


def detect_scale_line(image: np.ndarray) -> Line:
    """Return the longest near-horizontal line over 50 px, or all zeros."""
    gray = to_gray(image) if image.ndim == 3 else image.copy()
    edges = canny(gray, 50, 150)
    best: Line = (0, 0, 0, 0)
    max_length = 0.0
    for line in hough_lines_p(edges, 1, math.pi / 180, 50, 50, 10):
        dx = line[2] - line[0]
        dy = line[3] - line[1]
        length = math.hypot(dx, dy)
        angle = abs(math.degrees(math.atan2(dy, dx)))
        if (angle < 10 or angle > 170) and length > max_length and length > 50:
            max_length = length
            best = line
    return best


def calculate_scale(line: Sequence[int], text: str) -> float:
    """Return nanometres per pixel from a scale bar and its label text."""
    length_px = math.hypot(line[2] - line[0], line[3] - line[1])
    digits = ""
    for ch in text:
        if ch.isascii() and (ch.isdigit() or ch == "."):
            digits += ch
        elif digits:
            break
    scale_nm = DEFAULT_SCALE_NM
    match = _NUMBER.match(digits)
    if match:
        scale_nm = float(match.group())
    if length_px == 0:
        return math.inf
    return scale_nm / length_px


def detect_scale_text(image: np.ndarray, line: Sequence[int]) -> str:
    """Return the scale bar's label; no text recognition is done, so a fixed default."""
    return "100 nm"


class ImageProcessor:
    """Finds cells in a set of images and collects them."""

    def __init__(self, debug_path: str | Path | None = DEBUG_IMAGE) -> None:
        self.debug_path = Path(debug_path) if debug_path is not None else None
        self.cells: list[Cell] = []

    def process_images(
        self, paths: Iterable[str | Path], params: HoughParams | None = None
    ) -> list[Cell]:
        """Detect cells in every readable image and return all of them."""
        params = params or HoughParams()
        self.cells = []
        for path in paths:
            src = load_image(path)
            if src is None:
                continue
            blurred = median_blur(to_gray(src), 5)
            circles = hough_circles(
                blurred,
                params.dp,
                params.min_dist,
                params.param1,
                params.param2,
                params.min_radius,
                params.max_radius,
            )
            found = extract_cells(src, circles, str(path))
            annotated = src.copy()
            for cell in found:
                x, y, r = cell.rounded_circle()
                draw_rectangle(annotated, x - r, y - r, 2 * r, 2 * r, RED, 2)
            self.cells.extend(found)
            if self.debug_path is not None:
                save_image(self.debug_path, annotated)

            line = detect_scale_line(src)
            if any(line):
                scale = calculate_scale(line, detect_scale_text(src, line))
                for cell in self.cells:
                    cell.diameter_nm = cell.diameter_px * scale
        return self.cells