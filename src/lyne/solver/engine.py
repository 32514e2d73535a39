"""Backtracking path search over the puzzle grid."""

from time import time
from typing import TextIO

from bitarray import bitarray
from bitarray.util import zeros

from lyne.board import CellKind, Grid, compatible
from lyne.solver.config import SolverConfig
from lyne.solver.config import config as solver_config
from lyne.solver.ledger import VisitLedger
from lyne.solver.moves import legal_moves
from lyne.solver.result import PathState, SearchStats, Solution, SolveResult, SolveStatus
from lyne.solver.utils import stats_line
from lyne.solver.validator import validate_coverage


class _SearchAborted(Exception):
    """Raised inside the recursion when the node budget runs out."""


class PathSearch:
    """Depth-first search routing one color at a time.

    Colors are routed in `grid.colors` order.  Each color's path is extended from its start
    endpoint until it enters its end endpoint with all of its color nodes visited, after which
    the next color starts.  All mutable state (ledger, partial paths) belongs to this object
    and is restored exactly on backtrack.
    """

    def __init__(
        self,
        grid: Grid,
        *,
        config: SolverConfig | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.grid = grid
        self.config = config if config is not None else solver_config
        self.out = out
        """Stream for progress reports, or None for a silent search."""

        self.colors: tuple[str, ...] = grid.colors
        self._reset()

    def _reset(self) -> None:
        self.ledger = VisitLedger(self.grid)
        self.paths: dict[str, list[int]] = {}
        """Partial or complete path per started color, as 1D indices."""
        self.states: dict[str, PathState] = {c: PathState.NOT_STARTED for c in self.colors}
        self.outstanding: dict[str, int] = {
            c: len(self.grid.color_nodes[c]) for c in self.colors
        }
        """Number of color nodes each color has yet to visit."""
        self.stats = SearchStats()
        self._head: int | None = None
        self._first_move: int | None = None

    def first_moves(self) -> list[int]:
        """Get the candidate first steps of the first color, as 1D indices.

        These are the independent top-level branches of the search.
        """
        if not self.colors:
            return []
        self._reset()
        color = self.colors[0]
        start, end = self.grid.endpoints[color]
        self.ledger.visit(start)
        return [
            link.idx
            for link in legal_moves(self.grid, self.ledger, start, color)
            if link.idx != end or self.outstanding[color] == 0
        ]

    def solve(self, *, first_move: int | None = None) -> SolveResult:
        """Search for the first valid assignment of paths.

        Args:
            first_move: If given, restrict the first color's first step to this 1D index.
                Used to split the search into independent branches.

        Returns:
            A SolveResult with status SOLVED and the solution, UNSOLVABLE if the search space
            was exhausted, or BUDGET_EXHAUSTED if `config.max_nodes` was reached first.
        """
        self._reset()
        self._first_move = first_move

        try:
            found = self._feasible(None, 0, ()) and self._start_color(0)
            status = SolveStatus.SOLVED if found else SolveStatus.UNSOLVABLE
        except _SearchAborted:
            status = SolveStatus.BUDGET_EXHAUSTED
        self.stats.end_time = time()

        if status != SolveStatus.SOLVED:
            return SolveResult(status, None, self.stats)
        solution = Solution(
            {
                color: tuple(self.grid.get_2d_idx(idx) for idx in self.paths[color])
                for color in self.colors
            }
        )
        return SolveResult(status, solution, self.stats)

    def _start_color(self, order: int) -> bool:
        """Start routing `self.colors[order]`, or validate the final state if none are left."""
        if order == len(self.colors):
            return validate_coverage(self.grid, self.paths, self.ledger.remaining)

        color = self.colors[order]
        start, _ = self.grid.endpoints[color]
        mark = self.ledger.mark()
        self.ledger.visit(start)
        self.paths[color] = [start]
        self.states[color] = PathState.IN_PROGRESS
        self._head = start

        if self._extend(order, start):
            return True

        # Exhausted every path for this color; backtrack to the previous color
        self._head = None
        del self.paths[color]
        self.states[color] = PathState.NOT_STARTED
        self.ledger.undo(mark)
        return False

    def _extend(self, order: int, head: int) -> bool:
        """Try every legal step from `head` for the active color, recursing on each."""
        self._count_node()

        color = self.colors[order]
        path = self.paths[color]
        _, end = self.grid.endpoints[color]
        restrict = self._first_move if order == 0 and len(path) == 1 else None

        for link in legal_moves(self.grid, self.ledger, head, color):
            nxt = link.idx
            if restrict is not None and nxt != restrict:
                continue
            closing = nxt == end
            if closing and self.outstanding[color] > 0:
                # Entering the end endpoint now would leave color nodes unvisited
                continue

            mark = self.ledger.mark()
            self.ledger.visit(nxt)
            self.ledger.draw(link.segment)
            path.append(nxt)
            is_node = self.grid.cells[nxt].kind == CellKind.NODE
            if is_node:
                self.outstanding[color] -= 1
            self._head = None if closing else nxt

            if self._feasible(color if not closing else None, order + 1, (head, nxt)):
                if closing:
                    self.states[color] = PathState.COMPLETED
                    if self._start_color(order + 1):
                        return True
                    self.states[color] = PathState.IN_PROGRESS
                elif self._extend(order, nxt):
                    return True

            if is_node:
                self.outstanding[color] += 1
            path.pop()
            self.ledger.undo(mark)
            self._head = head
            self.stats.backtracks += 1

        return False

    def _count_node(self) -> None:
        """Update statistics, report progress, and enforce the node budget."""
        stats = self.stats
        stats.nodes_explored += 1
        depth = self.grid.total_capacity - self.ledger.total_remaining
        stats.max_depth_reached = max(stats.max_depth_reached, depth)

        if self.config.max_nodes is not None and stats.nodes_explored > self.config.max_nodes:
            raise _SearchAborted()

        interval = self.config.report_interval
        if self.out is not None and interval > 0 and stats.nodes_explored % interval == 0:
            print(stats_line(stats, depth=depth), file=self.out, flush=True)

    def _feasible(self, head_color: str | None, next_unstarted: int, step: tuple[int, ...]) -> bool:
        """Check the pruning rules after a step (or for the initial state if `step` is empty).

        Args:
            head_color: Color of the path whose head is `self._head`, or None if no path is
                in progress.
            next_unstarted: Index into `self.colors` of the first color not yet started.
            step: The (previous head, new head) pair of the last step.
        """
        if self.config.local_pruning:
            if step:
                to_check: set[int] = set(step)
                for idx in step:
                    to_check.update(link.idx for link in self.grid.links[idx])
            else:
                to_check = set(range(len(self.grid)))
            if not all(self._has_enough_segments(idx) for idx in to_check):
                return False

        if self.config.reachability_pruning:
            return self._coverable(head_color, next_unstarted)
        return True

    def _is_live(self, idx: int) -> bool:
        """Whether some path can still stand on cell `idx` at a later point."""
        return self.ledger.remaining[idx] > 0 or idx == self._head

    def _demand(self, idx: int) -> int:
        """Number of distinct undrawn segments cell `idx` will still need."""
        remaining = self.ledger.remaining[idx]
        if idx == self._head:
            # One segment to leave now, two for every later pass
            return 1 + 2 * remaining
        if remaining == 0:
            return 0
        if self.grid.cells[idx].kind == CellKind.ENDPOINT:
            return 1
        return 2 * remaining

    def _has_enough_segments(self, idx: int) -> bool:
        """Local reachability check: can cell `idx` still be entered and left often enough?"""
        demand = self._demand(idx)
        if demand == 0:
            return True
        cell = self.grid.cells[idx]
        usable = 0
        for link in self.grid.links[idx]:
            if self.ledger.segments[link.segment] or not self._is_live(link.idx):
                continue
            if not compatible(cell, self.grid.cells[link.idx]):
                continue
            usable += 1
            if usable >= demand:
                return True
        return False

    def _reachable(self, origin: int, color: str) -> bitarray:
        """Cells a path of `color` standing on `origin` could still reach.

        Traverses cells with remaining capacity that the color may enter, stopping at the
        color's end endpoint.  Ignores segment usage, so it over-approximates.
        """
        cells = self.grid.cells
        remaining = self.ledger.remaining
        _, end = self.grid.endpoints[color]

        seen = zeros(len(cells))
        seen[origin] = 1
        stack = [origin]
        while stack:
            idx = stack.pop()
            if idx == end:
                continue
            for link in self.grid.links[idx]:
                nxt = link.idx
                if seen[nxt] or remaining[nxt] == 0:
                    continue
                other = cells[nxt].color
                if other is not None and other != color:
                    continue
                seen[nxt] = 1
                stack.append(nxt)
        return seen

    def _coverable(self, head_color: str | None, next_unstarted: int) -> bool:
        """Capacity budget check: can the colors left still consume all remaining capacity?

        Every cell with remaining capacity must be reachable from the active head or from the
        start of a color not yet routed, and each of those colors must still be able to reach
        its end endpoint.
        """
        frontiers: list[tuple[int, str]] = []
        if self._head is not None and head_color is not None:
            frontiers.append((self._head, head_color))
        frontiers.extend(
            (self.grid.endpoints[color][0], color) for color in self.colors[next_unstarted:]
        )

        reached = zeros(len(self.grid))
        for origin, color in frontiers:
            seen = self._reachable(origin, color)
            if not seen[self.grid.endpoints[color][1]]:
                return False
            reached |= seen

        return not (self.ledger.live_cells() & ~reached).any()


def solve(
    grid: Grid,
    *,
    config: SolverConfig | None = None,
    out: TextIO | None = None,
) -> SolveResult:
    """Solve `grid` in-process and return the first solution found, if any."""
    return PathSearch(grid, config=config, out=out).solve()
