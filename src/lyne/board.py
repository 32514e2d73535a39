"""Classes and functions for representing the puzzle grid."""

from collections.abc import Iterable, Sequence
from enum import Enum, IntEnum
from typing import NamedTuple

import numpy as np
from sortedcontainers import SortedDict

Position = tuple[int, int]
"""A (row, col) coordinate on the grid."""

BLANK_SYMBOL = "."


class MalformedBoard(ValueError):
    """Raised when a board description cannot form a valid grid.

    The `reason` attribute is one of "empty", "irregular_shape", "unknown_symbol" or
    "endpoint_count".
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class CellKind(IntEnum):
    """Enumeration for the closed set of cell kinds."""

    BLANK = 0
    ENDPOINT = 1
    NODE = 2
    NUMBERED = 3


class Direction(Enum):
    """Steps between adjacent cells, as (row, col) offsets.

    Iteration order is the order in which moves are tried.
    """

    RIGHT = (0, 1)
    DOWN_RIGHT = (1, 1)
    DOWN = (1, 0)
    DOWN_LEFT = (1, -1)
    LEFT = (0, -1)
    UP_LEFT = (-1, -1)
    UP = (-1, 0)
    UP_RIGHT = (-1, 1)

    @property
    def diagonal(self) -> bool:
        """Whether the step changes both row and column."""
        d_row, d_col = self.value
        return d_row != 0 and d_col != 0

    @property
    def opposite(self) -> "Direction":
        """The step leading back."""
        d_row, d_col = self.value
        return Direction((-d_row, -d_col))


_SEGMENT_SLOTS: dict[Direction, int] = {
    Direction.RIGHT: 0,
    Direction.DOWN_RIGHT: 1,
    Direction.DOWN: 2,
    Direction.DOWN_LEFT: 3,
}
"""Segments are stored at the cell they leave from in one of these four directions.

A segment leaving in any other direction is stored at its other end, reversed.
"""

SEGMENTS_PER_CELL = len(_SEGMENT_SLOTS)


class Cell(NamedTuple):
    """A single immutable board cell."""

    row: int
    col: int
    kind: CellKind
    color: str | None = None
    """Uppercase color letter for endpoints and color nodes, else None."""
    capacity: int = 0
    """Total number of times the cell must be entered."""

    @property
    def pos(self) -> Position:
        return (self.row, self.col)

    @property
    def symbol(self) -> str:
        """The board character this cell was parsed from."""
        if self.kind == CellKind.ENDPOINT:
            return self.color or "?"
        if self.kind == CellKind.NODE:
            return (self.color or "?").lower()
        if self.kind == CellKind.NUMBERED:
            return str(self.capacity)
        return BLANK_SYMBOL


class Link(NamedTuple):
    """Precomputed adjacency from one cell to a neighbor."""

    direction: Direction
    idx: int
    """1D index of the neighbor."""
    segment: int
    """Index of the segment joining the two cells."""
    crossing: int
    """Index of the diagonal segment this one would cross, or -1 for orthogonal steps."""


def parse_symbol(ch: str, row: int, col: int) -> Cell:
    """Convert a single board character into a Cell.

    Raises:
        MalformedBoard: If the character is not a recognized cell symbol.
    """
    if ch == BLANK_SYMBOL:
        return Cell(row, col, CellKind.BLANK)
    if ch.isascii() and ch.isalpha():
        if ch.isupper():
            return Cell(row, col, CellKind.ENDPOINT, ch, 1)
        return Cell(row, col, CellKind.NODE, ch.upper(), 1)
    if ch.isascii() and ch.isdigit() and ch != "0":
        return Cell(row, col, CellKind.NUMBERED, None, int(ch))
    raise MalformedBoard("unknown_symbol", f"Unknown symbol {ch!r} at row {row}, column {col}.")


def compatible(a: Cell, b: Cell) -> bool:
    """Whether a single path may step between the two cells.

    Blank cells are never part of a path, and two colored cells must share their color.
    """
    if a.kind == CellKind.BLANK or b.kind == CellKind.BLANK:
        return False
    return a.color is None or b.color is None or a.color == b.color


class Grid:
    """Immutable board of typed cells, stored as a 1D row-major tuple.

    Contains support for both 1D and 2D indexing, as well as the precomputed adjacency
    (4 neighbors, or 8 when `diagonals` is set) used by the search.
    """

    def __init__(
        self,
        cells: Iterable[Cell],
        n_rows: int,
        n_cols: int,
        *,
        diagonals: bool = False,
    ) -> None:
        self.cells: tuple[Cell, ...] = tuple(cells)
        """Cells in row-major order."""

        self.n_rows: int = n_rows
        """Number of rows in the grid."""

        self.n_cols: int = n_cols
        """Number of columns in the grid."""

        self.diagonals: bool = diagonals
        """Whether diagonal steps are allowed in addition to orthogonal ones."""

        if len(self.cells) != n_rows * n_cols:
            raise MalformedBoard(
                "irregular_shape",
                f"Expected {n_rows * n_cols} cells for a {n_rows}x{n_cols} grid, "
                f"got {len(self.cells)}.",
            )

        endpoint_idxs: dict[str, list[int]] = {}
        node_idxs: dict[str, list[int]] = {}
        for idx, cell in enumerate(self.cells):
            if cell.kind == CellKind.ENDPOINT:
                endpoint_idxs.setdefault(cell.color, []).append(idx)
            elif cell.kind == CellKind.NODE:
                node_idxs.setdefault(cell.color, []).append(idx)

        for color in sorted(set(endpoint_idxs) | set(node_idxs)):
            count = len(endpoint_idxs.get(color, []))
            if count != 2:
                raise MalformedBoard(
                    "endpoint_count",
                    f"Color {color!r} has {count} endpoints, but there should be exactly 2.",
                )

        self.endpoints: SortedDict = SortedDict(
            (color, (idxs[0], idxs[1])) for color, idxs in endpoint_idxs.items()
        )
        """Mapping from color to its (start, end) endpoint indices, in routing order.

        The start is the endpoint that comes first in row-major order.
        """

        self.color_nodes: dict[str, tuple[int, ...]] = {
            color: tuple(node_idxs.get(color, ())) for color in self.endpoints
        }
        """Mapping from color to the indices of its plain color nodes."""

        self.links: tuple[tuple[Link, ...], ...] = tuple(
            self._build_links(idx) for idx in range(len(self.cells))
        )
        """Adjacency of each cell, in move-trial order.

        Since the board topology does not change, this is built once at initialization.
        """

    @classmethod
    def from_rows(cls, rows: Sequence[str], *, diagonals: bool = False) -> "Grid":
        """Build a grid from board rows, one string per row.

        Raises:
            MalformedBoard: If the board is empty, non-rectangular, contains an unknown
                symbol, or a color does not have exactly two endpoints.
        """
        if not rows:
            raise MalformedBoard("empty", "The board has no rows.")
        width = len(rows[0])
        if width == 0:
            raise MalformedBoard("empty", "The board has no columns.")
        cells: list[Cell] = []
        for row, line in enumerate(rows):
            if len(line) != width:
                raise MalformedBoard(
                    "irregular_shape",
                    f"Row {row} has length {len(line)}, but the first row has length {width}.",
                )
            cells.extend(parse_symbol(ch, row, col) for col, ch in enumerate(line))
        return cls(cells, len(rows), width, diagonals=diagonals)

    @classmethod
    def from_text(cls, text: str, *, diagonals: bool = False) -> "Grid":
        """Build a grid from a text board, rows separated by line breaks.

        Trailing whitespace on each line and surrounding blank lines are ignored.
        """
        lines = [line.rstrip() for line in text.splitlines()]
        while lines and not lines[0]:
            lines.pop(0)
        while lines and not lines[-1]:
            lines.pop()
        return cls.from_rows(lines, diagonals=diagonals)

    def _build_links(self, idx: int) -> tuple[Link, ...]:
        row, col = self.get_2d_idx(idx)
        links: list[Link] = []
        for direction in Direction:
            if direction.diagonal and not self.diagonals:
                continue
            d_row, d_col = direction.value
            n_row, n_col = row + d_row, col + d_col
            if not (0 <= n_row < self.n_rows and 0 <= n_col < self.n_cols):
                continue
            links.append(
                Link(
                    direction=direction,
                    idx=self.get_1d_idx(n_row, n_col),
                    segment=self.segment_index(row, col, direction),
                    crossing=self._crossing_segment(row, col, direction),
                )
            )
        return tuple(links)

    def segment_index(self, row: int, col: int, direction: Direction) -> int:
        """Index of the segment leaving (row, col) in `direction`.

        Both ends of a segment map to the same index.
        """
        if direction not in _SEGMENT_SLOTS:
            d_row, d_col = direction.value
            row, col, direction = row + d_row, col + d_col, direction.opposite
        return self.get_1d_idx(row, col) * SEGMENTS_PER_CELL + _SEGMENT_SLOTS[direction]

    def _crossing_segment(self, row: int, col: int, direction: Direction) -> int:
        """The other diagonal of the 2x2 block a diagonal step passes through."""
        if not direction.diagonal:
            return -1
        d_row, d_col = direction.value
        top_row = min(row, row + d_row)
        left_col = min(col, col + d_col)
        # The two diagonals of a block are top-left to bottom-right and top-right to
        # bottom-left.
        if (d_row > 0) == (d_col > 0):
            return self.segment_index(top_row, left_col + 1, Direction.DOWN_LEFT)
        return self.segment_index(top_row, left_col, Direction.DOWN_RIGHT)

    @property
    def n_segments(self) -> int:
        """Size of the segment index space."""
        return len(self.cells) * SEGMENTS_PER_CELL

    @property
    def colors(self) -> tuple[str, ...]:
        """Colors on the board, in routing order."""
        return tuple(self.endpoints.keys())

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_rows, self.n_cols)

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, idx: int | Position) -> Cell:
        """Get a cell by 1D (row-major order) or 2D index."""
        if isinstance(idx, int):
            return self.cells[idx]
        if isinstance(idx, tuple) and len(idx) == 2:
            row, col = idx
            if not (0 <= row < self.n_rows and 0 <= col < self.n_cols):
                raise IndexError(f"Position {idx} is outside the {self.n_rows}x{self.n_cols} grid.")
            return self.cells[row * self.n_cols + col]
        raise IndexError("Invalid index type for Grid.")

    def cell(self, pos: Position) -> Cell:
        """Get the cell at a (row, col) position."""
        return self[pos]

    def get_2d_idx(self, one_d_idx: int) -> Position:
        """Convert a 1D index to a (row, col) tuple."""
        return divmod(one_d_idx, self.n_cols)

    def get_1d_idx(self, row: int, col: int) -> int:
        """Convert a (row, col) tuple to a 1D index."""
        return row * self.n_cols + col

    def neighbors(self, pos: Position) -> list[Position]:
        """Get the in-bounds positions adjacent to `pos`."""
        self[pos]  # Bounds check
        return [self.get_2d_idx(link.idx) for link in self.links[self.get_1d_idx(*pos)]]

    def endpoint_pairs(self) -> dict[str, tuple[Position, Position]]:
        """Get the (start, end) endpoint positions per color."""
        return {
            color: (self.get_2d_idx(start), self.get_2d_idx(end))
            for color, (start, end) in self.endpoints.items()
        }

    def capacities(self) -> list[int]:
        """Visit capacity of every cell, in row-major order."""
        return [cell.capacity for cell in self.cells]

    def capacity_grid(self) -> np.ndarray:
        """Visit capacities as a 2D integer array."""
        return np.array(self.capacities(), dtype=np.int64).reshape(self.shape)

    @property
    def total_capacity(self) -> int:
        return sum(cell.capacity for cell in self.cells)

    def rows(self) -> list[str]:
        """The board as text rows."""
        return [
            "".join(self.cells[row * self.n_cols + col].symbol for col in range(self.n_cols))
            for row in range(self.n_rows)
        ]

    def __str__(self) -> str:
        """Returns a string representation of the grid."""
        return "\n".join(self.rows())
