"""Conversion of solutions into ordered, renderable forms."""

from typing import NamedTuple

import numpy as np

from lyne.board import Direction, Grid, Position
from lyne.solver.result import Solution


class ColorTrace(NamedTuple):
    """The ordered cells of one color's path."""

    color: str
    coords: tuple[Position, ...]


class Step(NamedTuple):
    """A single drawn segment: leave (row, col) in `direction`."""

    row: int
    col: int
    direction: Direction
    color: str


def report(solution: Solution) -> list[ColorTrace]:
    """Get the per-color coordinate sequences, in routing order."""
    return [ColorTrace(color, tuple(path)) for color, path in solution.paths.items()]


def steps(solution: Solution) -> list[Step]:
    """Get the drawn segments of every path, grouped by color, in drawing order."""
    ret: list[Step] = []
    for color, path in solution.paths.items():
        for (r1, c1), (r2, c2) in zip(path, path[1:]):
            ret.append(Step(r1, c1, Direction((r2 - r1, c2 - c1)), color))
    return ret


def format_trace(solution: Solution) -> str:
    """Format the solution as one line of coordinates per color."""
    if not solution.paths:
        return "(no colors to route)"
    return "\n".join(
        f"{trace.color}: " + " -> ".join(f"({row}, {col})" for row, col in trace.coords)
        for trace in report(solution)
    )


def format_steps(solution: Solution) -> str:
    """Format the solution as a header per color followed by one "DIRECTION row col" per step."""
    lines: list[str] = []
    current: str | None = None
    for step in steps(solution):
        if step.color != current:
            current = step.color
            lines.append(f"{current}:")
        lines.append(f"{step.direction.name} {step.row} {step.col}")
    return "\n".join(lines)


def _connector(direction: Direction) -> str:
    d_row, d_col = direction.value
    if d_row == 0:
        return "-"
    if d_col == 0:
        return "|"
    return "\\" if d_row * d_col > 0 else "/"


def render_overlay(grid: Grid, solution: Solution) -> str:
    """Draw the board with the solution's segments between cells.

    Cells sit on even rows and columns of a character canvas; segments are drawn halfway
    between the cells they join.
    """
    canvas = np.full((2 * grid.n_rows - 1, 2 * grid.n_cols - 1), " ", dtype="<U1")
    for cell in grid.cells:
        canvas[2 * cell.row, 2 * cell.col] = cell.symbol
    for step in steps(solution):
        d_row, d_col = step.direction.value
        canvas[2 * step.row + d_row, 2 * step.col + d_col] = _connector(step.direction)
    return "\n".join("".join(line).rstrip() for line in canvas)
