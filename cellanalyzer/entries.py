"""Editable per-cell diameter entries shown during verification."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from .cell import Cell
from .geometry import to_pil_image


def format_nm(value: float) -> str:
    """Format a diameter in nanometres with two decimals."""
    return f"{value:.2f}"


def _text_to_float(text: str) -> float:
    """Parse a number leniently: anything that is not a number reads as zero."""
    try:
        return float(text.strip())
    except ValueError:
        return 0.0


@dataclass
class CellEntry:
    """A detected cell paired with the diameter text the user typed for it."""

    cell: Cell
    diameter_nm_text: str = ""

    @property
    def diameter_px(self) -> int:
        """The detected diameter in whole pixels."""
        return int(self.cell.diameter_px)

    @property
    def diameter_nm(self) -> float:
        """The entered diameter in nanometres; zero when empty or not a number."""
        return _text_to_float(self.diameter_nm_text)

    @property
    def is_filled(self) -> bool:
        return bool(self.diameter_nm_text)

    @property
    def image(self) -> Image.Image | None:
        """The cell's cropped image as a PIL image, or None if it has none."""
        return to_pil_image(self.cell.image)

    def set_diameter_nm(self, nm: float) -> None:
        """Set the entered diameter, formatted with two decimals."""
        self.diameter_nm_text = format_nm(nm)

    def clear(self) -> None:
        """Erase the entered diameter."""
        self.diameter_nm_text = ""