"""Main module for worker tasks in the parallel solver."""

from dataclasses import dataclass
from multiprocessing.sharedctypes import Synchronized

from lyne.puzzle_config import PuzzleConfig
from lyne.solver.config import SolverConfig
from lyne.solver.engine import PathSearch
from lyne.solver.result import SolveResult


@dataclass(kw_only=True)
class WorkerState:
    """Global state maintained by each worker process."""

    worker_idx: int
    """Index of the worker process."""

    start_time: float
    """Timestamp when the solver started, in seconds since the epoch."""

    settings: SolverConfig
    """Solver configuration received from the parent process."""

    n_tasks: int = 0
    """Number of branches searched by this worker."""


worker_state: WorkerState | None = None
"""Global state for each worker process."""


def init_worker_globals(
    worker_ctr: "Synchronized[int]",
    start_time: float,
    settings: dict,
) -> None:
    """Initialize global variables for worker processes.

    Args:
        worker_ctr (Synchronized[int]): Shared counter for workers.
        start_time (float): UNIX timestamp when the solver started.
        settings (dict): `SolverConfig.model_dump()` of the parent's configuration.
    """
    global worker_state  # noqa: PLW0603
    with worker_ctr.get_lock():
        # Get and set the shared worker counter atomically, using the obtained value
        # as the worker index
        worker_idx = worker_ctr.value
        worker_ctr.value += 1

    worker_state = WorkerState(
        worker_idx=worker_idx,
        start_time=start_time,
        settings=SolverConfig(**settings),
    )
    print(f"Worker {worker_state.worker_idx} initialized.", flush=True)


def worker_task(first_move: int, puzzle_config: dict) -> SolveResult:
    """Search the branch of the puzzle that starts with a given first step.

    Each call builds its own grid and ledger, so no search state is shared between tasks.

    Args:
        first_move (int): 1D index of the first color's first step.
        puzzle_config (dict): Dict representation of a PuzzleConfig.

    Returns:
        The SolveResult of the branch.
    """
    if not worker_state:
        raise RuntimeError("Worker state not initialized. Call init_worker_globals first.")

    worker_state.n_tasks += 1
    grid = PuzzleConfig.from_dict(puzzle_config).to_grid()
    return PathSearch(grid, config=worker_state.settings).solve(first_move=first_move)
