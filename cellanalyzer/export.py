"""Saving reviewed cells: cropped images, CSV tables and annotated originals."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from .cell import Cell
from .entries import CellEntry, format_nm
from .geometry import is_circle_inside_image, to_pil_image
from .vision import draw_rectangle, load_image, put_text, save_image

_log = logging.getLogger(__name__)

RED = (0, 0, 255)
RESULTS_DIR = "results"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
SEPARATE_CSV = "results.csv"
SINGLE_CSV = "all_results.csv"
DEBUG_IMAGE = "debug.png"

CellPair = tuple[Cell, float]


class SaveMode(Enum):
    """Where results of several source images go."""

    SEPARATE = "separate"
    SINGLE = "single"


def _base_name(image_path: str) -> str:
    """Return the file name up to its first dot."""
    return Path(image_path).name.split(".", 1)[0]


def group_by_image(entries: Iterable[CellEntry]) -> dict[str, list[CellPair]]:
    """Group entries by source image path, ordered by path.

    Each cell is paired with its entered diameter; an empty entry counts as zero.
    """
    groups: dict[str, list[CellPair]] = {}
    for entry in entries:
        groups.setdefault(entry.cell.image_path, []).append((entry.cell, entry.diameter_nm))
    return {path: groups[path] for path in sorted(groups)}


def cell_file_name(index: int, diameter_nm: float, base_name: str | None = None) -> str:
    """Return the file name of a saved cell image.

    Without ``base_name`` the index is padded to three digits, with it to four
    and the name is prefixed by the source image's base name.
    """
    nm = int(diameter_nm)
    if base_name is None:
        return f"cell_{index:03d}_{nm}nm.png"
    return f"{base_name}_cell_{index:04d}_{nm}nm.png"


def save_debug_image(
    image_path: str | Path, pairs: Sequence[CellPair], output_path: str | Path
) -> bool:
    """Draw each fully visible cell's box, with its diameter if known, on the
    original image and write it to ``output_path``. Returns whether it was written."""
    original = load_image(image_path)
    if original is None:
        _log.error("Failed to load image for debug: %s", image_path)
        return False

    h, w = original.shape[:2]
    drawn = 0
    for cell, diameter_nm in pairs:
        x, y, r = cell.rounded_circle()
        if not is_circle_inside_image(x, y, r, w, h):
            continue
        draw_rectangle(original, x - r, y - r, 2 * r, 2 * r, RED, 2)
        if diameter_nm > 0:
            put_text(original, f"{int(diameter_nm)} nm", x - r, y - r - 5, RED, 0.5)
        drawn += 1
    _log.info("Drew %d rectangles on debug image", drawn)

    if save_image(output_path, original):
        _log.info("Debug image saved successfully to: %s", output_path)
        return True
    _log.error("Failed to save debug image to: %s", output_path)
    return False


def _save_cell_image(cell: Cell, path: Path) -> bool:
    image = to_pil_image(cell.image)
    if image is None:
        _log.warning("Failed to save file: %s", path)
        return False
    try:
        image.save(path, "PNG")
    except (OSError, ValueError):
        _log.warning("Failed to save file: %s", path)
        return False
    return True


def _save_separately(groups: dict[str, list[CellPair]], results_dir: Path) -> None:
    for image_path, pairs in groups.items():
        image_dir = results_dir / _base_name(image_path)
        image_dir.mkdir(parents=True, exist_ok=True)
        save_debug_image(image_path, pairs, image_dir / DEBUG_IMAGE)
        with open(image_dir / SEPARATE_CSV, "w", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            writer.writerow(["filename", "diameter_nm"])
            for index, (cell, diameter_nm) in enumerate(pairs, start=1):
                name = cell_file_name(index, diameter_nm)
                if _save_cell_image(cell, image_dir / name):
                    writer.writerow([name, format_nm(diameter_nm)])


def _save_together(groups: dict[str, list[CellPair]], results_dir: Path) -> None:
    with open(results_dir / SINGLE_CSV, "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(["source_image", "cell_filename", "diameter_nm"])
        index = 1
        for image_path, pairs in groups.items():
            base = _base_name(image_path)
            save_debug_image(image_path, pairs, results_dir / f"debug_{base}.png")
            for cell, diameter_nm in pairs:
                name = cell_file_name(index, diameter_nm, base)
                if _save_cell_image(cell, results_dir / name):
                    writer.writerow([base, name, format_nm(diameter_nm)])
                index += 1


def save_results(
    entries: Iterable[CellEntry],
    base_dir: str | Path | None = None,
    mode: SaveMode = SaveMode.SEPARATE,
    timestamp: datetime | None = None,
) -> Path:
    """Save cells under ``<base_dir>/results/<timestamp>`` and return that directory.

    ``base_dir`` defaults to the working directory, ``timestamp`` to now.
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    stamp = (timestamp or datetime.now()).strftime(TIMESTAMP_FORMAT)
    results_dir = base / RESULTS_DIR / stamp
    results_dir.mkdir(parents=True, exist_ok=True)
    _log.info("Saving results to: %s", results_dir.resolve())

    groups = group_by_image(entries)
    if SaveMode(mode) is SaveMode.SEPARATE:
        _save_separately(groups, results_dir)
    else:
        _save_together(groups, results_dir)
    return results_dir