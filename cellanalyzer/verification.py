"""Review of detected cells: entering known diameters and deriving the scale."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .cell import Cell
from .entries import CellEntry
from .settings import SettingsManager

CELL_WIDGET_WIDTH = 160
GRID_SPACING = 10
_SCROLLBAR_ALLOWANCE = 30


class ViewMode(Enum):
    GRID = 0
    LIST = 1


def average_scale(pairs: Iterable[tuple[float, int]]) -> float | None:
    """Return the mean of ``nm / px`` over ``(nm, px)`` pairs with ``px > 0``.

    Returns None when no pair has a positive pixel diameter.
    """
    scales = [nm / px for nm, px in pairs if px > 0]
    if not scales:
        return None
    return sum(scales) / len(scales)


class VerificationSession:
    """The cells under review, their entered diameters and the nm/pixel factor.

    Changing the view mode or removing a cell rebuilds the entries, so any
    diameters entered so far are discarded.
    """

    def __init__(self, cells: Iterable[Cell], settings: SettingsManager | None = None) -> None:
        self.settings = settings
        self.cells: list[Cell] = [cell.copy() for cell in cells]
        self._view_mode = ViewMode.GRID
        self.entries: list[CellEntry] = []
        self.coefficient_text = ""
        if settings is not None and settings.nm_per_pixel > 0:
            self.coefficient_text = f"{settings.nm_per_pixel:.4f}"
        self._rebuild()

    def _rebuild(self) -> None:
        self.entries = [CellEntry(cell) for cell in self.cells]

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @view_mode.setter
    def view_mode(self, mode: ViewMode) -> None:
        self._view_mode = ViewMode(mode)
        self._rebuild()

    @property
    def any_filled(self) -> bool:
        """Whether any cell has a diameter entered."""
        return any(entry.is_filled for entry in self.entries)

    def recalculate(self) -> float | None:
        """Derive the mean nm/pixel factor from filled entries and fill the rest.

        Stores the factor in the settings. Returns it, or None when no entry
        gives a scale, in which case nothing changes.
        """
        scale = average_scale(
            (entry.diameter_nm, entry.diameter_px)
            for entry in self.entries
            if entry.is_filled
        )
        if scale is None:
            return None
        for entry in self.entries:
            if not entry.is_filled:
                entry.set_diameter_nm(entry.diameter_px * scale)
        self.coefficient_text = f"{scale:.4f}"
        if self.settings is not None:
            self.settings.nm_per_pixel = scale
        return scale

    def remove(self, index: int) -> Cell:
        """Remove the cell at ``index`` and rebuild the entries; returns the cell."""
        if not 0 <= index < len(self.cells):
            raise IndexError(f"no cell at index {index}")
        removed = self.cells.pop(index)
        self._rebuild()
        return removed

    def clear_diameters(self) -> None:
        """Reset entered diameters and the displayed factor.

        In the grid view the fields are set to zero; in the list view they are emptied.
        """
        for entry in self.entries:
            if self._view_mode is ViewMode.LIST:
                entry.clear()
            else:
                entry.set_diameter_nm(0.0)
        self.coefficient_text = ""

    def grid_positions(self, container_width: int) -> list[tuple[int, int]]:
        """Return the ``(row, column)`` of each cell in a grid of the given width."""
        usable = container_width - _SCROLLBAR_ALLOWANCE
        columns = max(1, usable // (CELL_WIDGET_WIDTH + GRID_SPACING))
        return [divmod(index, columns) for index in range(len(self.entries))]