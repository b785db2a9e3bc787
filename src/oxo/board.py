"""Core rules for 3x3 tic-tac-toe: cells, moves, and win/draw detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

Cell = Tuple[int, int]


class Mark(str, Enum):
    """State of a single cell. ``X`` and ``O`` double as the two sides."""

    EMPTY = " "
    X = "X"
    O = "O"

    def opponent(self) -> "Mark":
        if self is Mark.X:
            return Mark.O
        if self is Mark.O:
            return Mark.X
        raise ValueError("EMPTY has no opponent")

    @property
    def is_side(self) -> bool:
        return self is not Mark.EMPTY


class Outcome(Enum):
    NONE = "none"
    DRAW = "draw"
    WIN = "win"


class LineKind(Enum):
    ROW = "row"
    COLUMN = "column"
    MAIN_DIAGONAL = "main-diagonal"
    ANTI_DIAGONAL = "anti-diagonal"


# Scan order matters: rows, then columns, then the two diagonals.
WINNING_LINES: Tuple[Tuple[LineKind, Optional[int], Tuple[Cell, Cell, Cell]], ...] = (
    (LineKind.ROW, 0, ((0, 0), (0, 1), (0, 2))),
    (LineKind.ROW, 1, ((1, 0), (1, 1), (1, 2))),
    (LineKind.ROW, 2, ((2, 0), (2, 1), (2, 2))),
    (LineKind.COLUMN, 0, ((0, 0), (1, 0), (2, 0))),
    (LineKind.COLUMN, 1, ((0, 1), (1, 1), (2, 1))),
    (LineKind.COLUMN, 2, ((0, 2), (1, 2), (2, 2))),
    (LineKind.MAIN_DIAGONAL, None, ((0, 0), (1, 1), (2, 2))),
    (LineKind.ANTI_DIAGONAL, None, ((0, 2), (1, 1), (2, 0))),
)

_SYMBOLS = {
    "X": Mark.X,
    "O": Mark.O,
    ".": Mark.EMPTY,
    "_": Mark.EMPTY,
    " ": Mark.EMPTY,
    "": Mark.EMPTY,
}


@dataclass(frozen=True)
class WinResult:
    """Outcome of :meth:`Board.evaluate`; computed on demand, never stored."""

    outcome: Outcome
    winner: Optional[Mark] = None
    line: Optional[LineKind] = None
    # 0-2 for rows and columns, None for the diagonals
    index: Optional[int] = None
    cells: Tuple[Cell, ...] = ()

    @property
    def is_win(self) -> bool:
        return self.outcome is Outcome.WIN

    @property
    def is_draw(self) -> bool:
        return self.outcome is Outcome.DRAW


NO_RESULT = WinResult(Outcome.NONE)
DRAW = WinResult(Outcome.DRAW)


@dataclass
class Board:
    # Row-major: cell (row, col) lives at index row * 3 + col
    cells: List[Mark] = field(default_factory=lambda: [Mark.EMPTY] * 9)

    def __post_init__(self) -> None:
        if len(self.cells) != 9:
            raise ValueError("A board has exactly 9 cells")

    # ---- queries ----

    def cell(self, row: int, col: int) -> Mark:
        return self.cells[self._index(row, col)]

    def is_cell_empty(self, row: int, col: int) -> bool:
        return self.cell(row, col) is Mark.EMPTY

    def is_valid_move(self, row: int, col: int) -> bool:
        """True iff (row, col) is on the board and the cell is empty."""
        return 0 <= row < 3 and 0 <= col < 3 and self.is_cell_empty(row, col)

    def is_full(self) -> bool:
        return all(c is not Mark.EMPTY for c in self.cells)

    def is_empty(self) -> bool:
        return all(c is Mark.EMPTY for c in self.cells)

    def empty_cells(self) -> List[Cell]:
        return [divmod(i, 3) for i, c in enumerate(self.cells) if c is Mark.EMPTY]

    def evaluate(self) -> WinResult:
        """Return the first completed line in scan order, else DRAW or NONE."""
        for kind, index, line in WINNING_LINES:
            first = self.cell(*line[0])
            if first is not Mark.EMPTY and all(self.cell(*rc) is first for rc in line[1:]):
                return WinResult(Outcome.WIN, first, kind, index, line)
        if self.is_full():
            return DRAW
        return NO_RESULT

    def is_terminal(self) -> bool:
        return self.evaluate().outcome is not Outcome.NONE

    # ---- mutators ----

    def attempt_move(self, row: int, col: int, side: Mark) -> bool:
        """Place ``side`` at (row, col). Returns False and leaves the board
        untouched when the move is illegal."""
        if not isinstance(side, Mark) or not side.is_side:
            return False
        if not self.is_valid_move(row, col):
            return False
        self.cells[self._index(row, col)] = side
        return True

    def reset(self) -> None:
        self.cells = [Mark.EMPTY] * 9

    # ---- copying & conversion ----

    def clone(self) -> "Board":
        return Board(cells=self.cells.copy())

    def rows(self) -> List[List[Mark]]:
        return [self.cells[r * 3 : r * 3 + 3] for r in range(3)]

    @classmethod
    def from_rows(cls, rows: Sequence[Iterable[str]]) -> "Board":
        """Build a board from three rows such as ``["XX.", "OO.", "..."]``.

        Empty cells may be written as ``.``, ``_``, a space or an empty string.
        Turn order is not checked, so artificial positions are allowed.
        """
        if len(rows) != 3:
            raise ValueError("Expected 3 rows")
        cells: List[Mark] = []
        for row in rows:
            symbols = list(row)
            if len(symbols) != 3:
                raise ValueError(f"Expected 3 cells per row, got {row!r}")
            for symbol in symbols:
                if isinstance(symbol, Mark):
                    cells.append(symbol)
                    continue
                try:
                    cells.append(_SYMBOLS[str(symbol).upper()])
                except KeyError as exc:
                    raise ValueError(f"Unknown cell symbol {symbol!r}") from exc
        return cls(cells=cells)

    def __str__(self) -> str:
        return "\n".join(
            " ".join("." if c is Mark.EMPTY else c.value for c in row)
            for row in self.rows()
        )

    # ---- helpers ----

    @staticmethod
    def _index(row: int, col: int) -> int:
        if not (0 <= row < 3 and 0 <= col < 3):
            raise IndexError(f"Cell ({row}, {col}) is off the board")
        return row * 3 + col
