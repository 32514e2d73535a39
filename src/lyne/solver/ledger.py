"""Per-search visit ledger with an undo trail."""

from array import array
from typing import NamedTuple

from bitarray import bitarray
from bitarray.util import zeros

from lyne.board import Grid


class UndoMark(NamedTuple):
    """Marker into the undo trails.

    Undo will reverse changes until the remaining lengths of the trails match these marks.
    """

    visit_mark: int
    segment_mark: int


class VisitLedger:
    """Remaining visit capacity per cell, plus the segments drawn so far.

    Owned by a single search: every mutation is recorded on a trail so that `undo()` restores
    the exact earlier state.
    """

    def __init__(self, grid: Grid) -> None:
        self.remaining: array[int] = array("I", grid.capacities())
        """Remaining number of entries per cell, in row-major order."""

        self.segments: bitarray = zeros(grid.n_segments)
        """Bit `i` is set if segment `i` has been drawn."""

        self.total_remaining: int = sum(self.remaining)
        """Sum of `remaining`, maintained incrementally."""

        # Undo trails: visited cell indices and drawn segment indices, in order
        self._visit_trail: array[int] = array("I")
        self._segment_trail: array[int] = array("I")

    def mark(self) -> UndoMark:
        """Get a marker for the current state, to be passed to `undo()`."""
        return UndoMark(len(self._visit_trail), len(self._segment_trail))

    def visit(self, idx: int) -> None:
        """Consume one unit of capacity of cell `idx`.

        Raises:
            ValueError: If the cell has no capacity left.
        """
        if self.remaining[idx] == 0:
            raise ValueError(f"Cell {idx} has no remaining capacity.")
        self.remaining[idx] -= 1
        self.total_remaining -= 1
        self._visit_trail.append(idx)

    def draw(self, segment: int) -> None:
        """Mark a segment as drawn.

        Raises:
            ValueError: If the segment was already drawn.
        """
        if self.segments[segment]:
            raise ValueError(f"Segment {segment} is already drawn.")
        self.segments[segment] = 1
        self._segment_trail.append(segment)

    def undo(self, mark: UndoMark) -> None:
        """Revert all visits and segments recorded after `mark`."""
        while len(self._visit_trail) > mark.visit_mark:
            idx = self._visit_trail.pop()
            self.remaining[idx] += 1
            self.total_remaining += 1

        while len(self._segment_trail) > mark.segment_mark:
            self.segments[self._segment_trail.pop()] = 0

    def live_cells(self) -> bitarray:
        """Bit `i` is set if cell `i` still needs at least one entry."""
        return bitarray([count > 0 for count in self.remaining])

    @property
    def exhausted(self) -> bool:
        """Whether every cell's capacity has been fully consumed."""
        return self.total_remaining == 0
