"""3x3 grid for Tic-Tac-Toe.

Pure game rules, no networking and no PyGame dependency. Cells are stored
row-major: cells[row * 3 + col]. Ownership is always from the local peer's
point of view, so the two peers label every cell oppositely.
"""

from __future__ import annotations

from enum import IntEnum

from src.config import GRID_CELLS


class Field(IntEnum):
    EMPTY = 0
    SELF = 1
    OPPONENT = 2


# All 8 winning lines: 3 rows, 3 columns, 2 diagonals
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class PlacementError(ValueError):
    """A placement could not be applied to the grid."""


class OutOfRange(PlacementError):
    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Cell index {index} is outside 0..{GRID_CELLS - 1}")


class CellOccupied(PlacementError):
    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Cell {index} is already taken")


class GridState:
    """The board plus whose turn it is.

    A cell, once set, is never reset. `turn` flips exactly once per
    successful placement and never on a failed one.
    """

    def __init__(self, turn: bool) -> None:
        self.turn = turn  # True = local peer to move
        self._cells: list[Field] = [Field.EMPTY] * GRID_CELLS

    @property
    def cells(self) -> tuple[Field, ...]:
        return tuple(self._cells)

    def place(self, index: int, who: Field) -> None:
        """Set cell `index` to `who` and flip the turn.

        Raises OutOfRange or CellOccupied without touching the board.
        """
        if not 0 <= index < GRID_CELLS:
            raise OutOfRange(index)
        if self._cells[index] != Field.EMPTY:
            raise CellOccupied(index)
        self._cells[index] = who
        self.turn = not self.turn

    def is_win(self, who: Field) -> bool:
        cells = self._cells
        return any(
            cells[a] == who and cells[b] == who and cells[c] == who
            for a, b, c in WIN_LINES
        )

    def is_full(self) -> bool:
        return Field.EMPTY not in self._cells

    def is_playing(self) -> bool:
        """True until either side has a line or the board is full."""
        if self.is_full():
            return False
        return not (self.is_win(Field.SELF) or self.is_win(Field.OPPONENT))
