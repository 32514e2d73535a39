"""Result types returned by the solver."""

from dataclasses import dataclass, field
from enum import Enum
from time import time

from lyne.board import Position


class SolveStatus(Enum):
    """Terminal state of a search."""

    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"
    BUDGET_EXHAUSTED = "budget_exhausted"


class PathState(Enum):
    """Progress of a single color's path during search."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Solution:
    """A completed path per color, each from its start endpoint to its end endpoint."""

    paths: dict[str, tuple[Position, ...]]
    """Mapping from color to the ordered (row, col) positions of its path."""

    def __getitem__(self, color: str) -> tuple[Position, ...]:
        return self.paths[color]

    @property
    def colors(self) -> tuple[str, ...]:
        return tuple(self.paths)

    def visit_count(self, pos: Position) -> int:
        """Number of times `pos` appears over all paths."""
        return sum(path.count(pos) for path in self.paths.values())


@dataclass
class SearchStats:
    """Statistics collected during solving."""

    nodes_explored: int = 0
    """Number of search states expanded."""

    backtracks: int = 0
    """Number of moves undone."""

    max_depth_reached: int = 0
    """Maximum number of steps drawn at once."""

    start_time: float = field(default_factory=time)
    """Timestamp when solving started."""

    end_time: float | None = None
    """Timestamp when solving ended, if it has."""

    @property
    def elapsed(self) -> float:
        """Seconds spent solving so far."""
        return (self.end_time if self.end_time is not None else time()) - self.start_time


@dataclass
class SolveResult:
    """Outcome of a solve."""

    status: SolveStatus
    solution: Solution | None = None
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def solved(self) -> bool:
        return self.status == SolveStatus.SOLVED
