"""Legal move generation for the path being extended."""

from lyne.board import CellKind, Grid, Link
from lyne.solver.ledger import VisitLedger


def can_enter(grid: Grid, ledger: VisitLedger, idx: int, color: str) -> bool:
    """Whether a path of `color` may enter cell `idx` given the current ledger.

    Numbered cells accept any color while capacity remains.  Endpoints and color nodes only
    accept their own color, and only while unused.  Blank cells never have capacity.
    """
    if ledger.remaining[idx] == 0:
        return False
    cell = grid.cells[idx]
    if cell.kind == CellKind.NUMBERED:
        return True
    if cell.kind in (CellKind.ENDPOINT, CellKind.NODE):
        return cell.color == color
    return False


def segment_free(ledger: VisitLedger, link: Link) -> bool:
    """Whether the segment of `link` is undrawn and does not cross a drawn diagonal."""
    if ledger.segments[link.segment]:
        return False
    return link.crossing < 0 or not ledger.segments[link.crossing]


def legal_moves(grid: Grid, ledger: VisitLedger, head: int, color: str) -> list[Link]:
    """Get the legal next steps from `head` for the path of `color`.

    Args:
        grid: The puzzle grid.
        ledger: Current visit ledger (not modified).
        head: 1D index of the path's current head.
        color: Color of the path being extended.

    Returns:
        The links to enterable neighbors, in direction order.  Empty at a dead end.
    """
    return [
        link
        for link in grid.links[head]
        if can_enter(grid, ledger, link.idx, color) and segment_free(ledger, link)
    ]
