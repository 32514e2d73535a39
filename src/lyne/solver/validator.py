"""Checks on completed path assignments."""

from collections.abc import Mapping, Sequence

import numpy as np

from lyne.board import CellKind, Direction, Grid
from lyne.solver.result import Solution


def validate_coverage(
    grid: Grid,
    paths: Mapping[str, Sequence[int]],
    remaining: Sequence[int],
) -> bool:
    """Validate a terminal search state: capacity fully consumed, paths joining endpoint pairs.

    Args:
        grid: The puzzle grid.
        paths: Mapping from color to its path, as 1D cell indices.
        remaining: Remaining capacity per cell, in row-major order.
    """
    if any(remaining):
        return False
    if set(paths) != set(grid.colors):
        return False
    for color, path in paths.items():
        if len(path) < 2:
            return False
        if {path[0], path[-1]} != set(grid.endpoints[color]):
            return False
    return True


def validate_solution(grid: Grid, solution: Solution) -> bool:
    """Validate a Solution independently of any search state.

    Checks that every cell is visited exactly its capacity, each path joins its color's two
    endpoints through adjacent, color-compatible cells, and no segment is drawn twice or
    crossed by another diagonal.
    """
    if set(solution.paths) != set(grid.colors):
        return False

    visits = np.zeros(grid.shape, dtype=np.int64)
    drawn: set[int] = set()
    for color, path in solution.paths.items():
        if len(path) < 2:
            return False
        start, end = grid.endpoint_pairs()[color]
        if {path[0], path[-1]} != {start, end}:
            return False

        for row, col in path:
            if not (0 <= row < grid.n_rows and 0 <= col < grid.n_cols):
                return False
            cell = grid[row, col]
            if cell.kind == CellKind.BLANK:
                return False
            if cell.color is not None and cell.color != color:
                return False
            visits[row, col] += 1

        for (r1, c1), (r2, c2) in zip(path, path[1:]):
            step = (r2 - r1, c2 - c1)
            try:
                direction = Direction(step)
            except ValueError:
                return False
            if direction.diagonal and not grid.diagonals:
                return False
            segment = grid.segment_index(r1, c1, direction)
            if segment in drawn:
                return False
            drawn.add(segment)

    for link_list in grid.links:
        for link in link_list:
            if link.segment in drawn and link.crossing in drawn:
                return False

    return bool(np.array_equal(visits, grid.capacity_grid()))
