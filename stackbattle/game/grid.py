"""
Cell matrix for one player's playfield.

The grid is a 2D numpy array (height x width) of int8 values:
  - 0 = empty cell
  - 1-7 = locked piece color id
  - 8 = garbage

The top `buffer_rows` rows (default 4) are a hidden buffer zone used for
spawning; the visible play area is the `visible_height` rows below it.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from stackbattle.game.pieces import GARBAGE_CELL

Cell = tuple[int, int]


class Grid:
    """Fixed-size playfield with collision checks, line clearing, and garbage.

    The grid shape never changes: clearing rows inserts empty rows at the
    top and inserting garbage drops rows off the top.

    Attributes:
        width: Number of columns (default 10).
        height: Number of rows including buffer zone (default 24).
        buffer_rows: Hidden rows above the visible area (default 4).
        cells: 2D numpy array of shape (height, width), dtype int8.
    """

    def __init__(self, width: int = 10, visible_height: int = 20, buffer_rows: int = 4) -> None:
        """Initialize an empty grid.

        Args:
            width: Number of columns.
            visible_height: Number of visible rows.
            buffer_rows: Number of hidden rows above the visible area.
        """
        self.width = width
        self.buffer_rows = buffer_rows
        self.height = visible_height + buffer_rows
        self.cells = np.zeros((self.height, self.width), dtype=np.int8)

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.width and 0 <= row < self.height

    def is_occupied(self, col: int, row: int) -> bool:
        """True if (col, row) holds a locked cell or lies outside the grid."""
        if not self.in_bounds(col, row):
            return True
        return bool(self.cells[row, col] != 0)

    def can_place(self, cells: Iterable[Cell]) -> bool:
        """Check whether every cell is in bounds and empty.

        Args:
            cells: Absolute (col, row) positions.

        Returns:
            True if the placement is valid, False otherwise.
        """
        for col, row in cells:
            if col < 0 or col >= self.width:
                return False
            if row < 0 or row >= self.height:
                return False
            if self.cells[row, col] != 0:
                return False
        return True

    def merge(self, cells: Iterable[Cell], value: int) -> None:
        """Write `value` into each cell.

        Does NOT check validity first; the caller must ensure the placement
        is valid.
        """
        for col, row in cells:
            self.cells[row, col] = value

    def clear_lines(self) -> int:
        """Remove all fully filled rows and shift everything above them down.

        Returns:
            The number of lines cleared (0-4).
        """
        full = np.all(self.cells != 0, axis=1)
        lines_cleared = int(full.sum())
        if lines_cleared == 0:
            return 0

        remaining = self.cells[~full]
        empty_rows = np.zeros((lines_cleared, self.width), dtype=np.int8)
        self.cells = np.vstack([empty_rows, remaining])
        return lines_cleared

    def add_garbage(self, lines: int, gap_column: int) -> bool:
        """Push `lines` garbage rows in from the bottom.

        Every garbage row is solid except at `gap_column`. Existing rows move
        up; the top `lines` rows fall off the grid.

        Args:
            lines: Number of rows to insert.
            gap_column: The open column of each garbage row.

        Returns:
            False if locked cells were pushed off the grid or moved from the
            visible area into the hidden buffer zone, True otherwise. Cells
            already in the buffer that stay inside it do not count.
        """
        if lines <= 0:
            return True
        lines = min(lines, self.height)
        pushed_off = np.any(self.cells[:lines] != 0)
        pushed_into_buffer = np.any(self.cells[self.buffer_rows:self.buffer_rows + lines] != 0)

        garbage = np.full((lines, self.width), GARBAGE_CELL, dtype=np.int8)
        garbage[:, gap_column % self.width] = 0
        self.cells = np.vstack([self.cells[lines:], garbage])

        return not (pushed_off or pushed_into_buffer)

    def get_grid(self) -> np.ndarray:
        """Return a copy of the cell matrix."""
        return self.cells.copy()

    def copy(self) -> Grid:
        clone = Grid(self.width, self.height - self.buffer_rows, self.buffer_rows)
        clone.cells = self.cells.copy()
        return clone

    def get_holes(self) -> int:
        """Count empty cells that have a filled cell somewhere above them."""
        filled = self.cells != 0
        block_above = np.maximum.accumulate(filled, axis=0)
        holes = block_above & ~filled
        return int(holes.sum())

    def get_column_heights(self) -> np.ndarray:
        """Height of every column measured from the bottom row (0 if empty)."""
        filled = self.cells != 0
        has_block = filled.any(axis=0)
        first_block = np.argmax(filled, axis=0)
        return np.where(has_block, self.height - first_block, 0)

    def get_aggregate_height(self) -> int:
        return int(self.get_column_heights().sum())

    def get_bumpiness(self) -> int:
        """Sum of absolute height differences between adjacent columns."""
        heights = self.get_column_heights()
        return int(np.abs(np.diff(heights)).sum())
