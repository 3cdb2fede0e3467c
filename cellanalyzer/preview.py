"""Ordered set of image paths laid out in a grid of previews."""

from __future__ import annotations

from typing import Iterator, NamedTuple

MIN_PREVIEW_SIZE = 50
MAX_PREVIEW_SIZE = 300
DEFAULT_PREVIEW_SIZE = 120
DEFAULT_COLUMNS = 3
_WINDOW_MARGIN = 60
_ITEM_SPACING = 10


class GridPosition(NamedTuple):
    path: str
    row: int
    column: int


def columns_for_width(window_width: int, preview_size: int) -> int:
    """Return how many previews of the given size fit across a window, at least one."""
    usable = window_width - _WINDOW_MARGIN
    return max(usable // (preview_size + _ITEM_SPACING), 1)


class PreviewGrid:
    """Unique image paths in the order they were added."""

    def __init__(self) -> None:
        self._paths: list[str] = []
        self.max_columns = DEFAULT_COLUMNS
        self._preview_size = DEFAULT_PREVIEW_SIZE

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    @property
    def preview_size(self) -> int:
        return self._preview_size

    @preview_size.setter
    def preview_size(self, size: int) -> None:
        self._preview_size = min(max(size, MIN_PREVIEW_SIZE), MAX_PREVIEW_SIZE)

    def add(self, path: str) -> bool:
        """Append a path; returns False if it is already present."""
        if path in self._paths:
            return False
        self._paths.append(path)
        return True

    def remove(self, path: str) -> bool:
        """Remove a path; returns False if it was not present."""
        if path not in self._paths:
            return False
        self._paths.remove(path)
        return True

    def clear(self) -> None:
        self._paths.clear()

    def positions(self) -> list[GridPosition]:
        """Return each path with its row and column in the grid."""
        columns = self.max_columns if self.max_columns > 0 else DEFAULT_COLUMNS
        return [
            GridPosition(path, *divmod(index, columns))
            for index, path in enumerate(self._paths)
        ]

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._paths))

    def __contains__(self, path: object) -> bool:
        return path in self._paths