"""Main solver module for LYNE puzzles."""

import os
import sys
from concurrent.futures import ProcessPoolExecutor
from datetime import datetime
from multiprocessing import Value
from multiprocessing.sharedctypes import Synchronized
from pathlib import Path
from pprint import pprint
from time import time
from typing import TextIO

from lyne.board import MalformedBoard
from lyne.puzzle_config import PuzzleConfig
from lyne.solver.config import SolverConfig
from lyne.solver.config import config as solver_config
from lyne.solver.engine import PathSearch
from lyne.solver.parallel import solve_with_parallel_branches
from lyne.solver.report import format_trace, render_overlay
from lyne.solver.result import SolveResult, SolveStatus
from lyne.solver.utils import TIMESTAMP_FMT, stats_line, time_str
from lyne.solver.worker import init_worker_globals


def get_executor(
    *,
    n_workers: int | None = None,
    settings: SolverConfig | None = None,
) -> ProcessPoolExecutor:
    """Get a ProcessPoolExecutor.

    Args:
        n_workers (int | None): Number of worker processes to create.  If None,
            defaults to number of CPU cores minus one.
        settings (SolverConfig | None): Configuration passed on to the workers.

    Returns:
        A ProcessPoolExecutor instance for worker processes.
    """
    settings = settings if settings is not None else solver_config
    worker_ctr: Synchronized[int] = Value("i", 0)

    cpus = os.cpu_count() or 1  # Fallback to 1 if os.cpu_count() is None
    if n_workers is None:
        n_workers = max(1, cpus - 1)  # Leave one core free
    if n_workers > cpus:
        raise ValueError(
            f"Requested number of workers ({n_workers}) exceeds CPU count ({cpus})",
        )
    return ProcessPoolExecutor(
        max_workers=n_workers,
        initializer=init_worker_globals,
        initargs=(worker_ctr, time(), settings.model_dump()),
    )


def run(config: PuzzleConfig) -> SolveResult:
    """Run the solver on the given configuration, logging to a per-board log file.

    Args:
        config (PuzzleConfig): The configuration for the puzzle to solve.

    Raises:
        MalformedBoard: If the board is not a valid puzzle.
    """
    print(f"config: {config}")

    logfile = Path(solver_config.log_dir) / f"{config.name}.log"
    print(f"Log file: {logfile}")

    logfile.parent.mkdir(parents=True, exist_ok=True)

    with open(logfile, "w", encoding="utf-8") as logf:
        try:
            result = solve_one(config, logf=logf)
        except KeyboardInterrupt:
            print("Solver interrupted by user.", file=logf, flush=True)
            print("Solver interrupted by user.")
            sys.exit(1)

    if result.solved and result.solution is not None:
        print(format_trace(result.solution))
        print()
        print(render_overlay(config.to_grid(), result.solution))
    elif result.status == SolveStatus.BUDGET_EXHAUSTED:
        print("Search budget exhausted before a verdict.")
    else:
        print("No solution exists.")
    print()
    return result


def solve_one(
    puzzle_config: PuzzleConfig,
    *,
    logf: TextIO,
    settings: SolverConfig | None = None,
) -> SolveResult:
    """Attempt to solve a LYNE puzzle.

    Args:
        puzzle_config (PuzzleConfig): The configuration for the puzzle to solve.
        logf: File object to log the solving process.
        settings (SolverConfig | None): Solver configuration, defaults to the global config.

    Raises:
        MalformedBoard: If the board is not a valid puzzle; the search is never started.
    """
    settings = settings if settings is not None else solver_config

    print(f"Selected puzzle: {puzzle_config.name}", file=logf, flush=True)
    print(f"Dimensions: {puzzle_config.dims}", file=logf, flush=True)
    print("Initial grid:", file=logf, flush=True)
    print("", file=logf, flush=True)
    print(puzzle_config.board_str, file=logf, flush=True)
    print("", file=logf, flush=True)

    try:
        grid = puzzle_config.to_grid()
    except MalformedBoard as e:
        print(f"Malformed board ({e.reason}): {e}", file=logf, flush=True)
        raise

    print(f"Colors: {', '.join(grid.colors) or '(none)'}", file=logf, flush=True)
    print(f"Total capacity: {grid.total_capacity}", file=logf, flush=True)
    print("Solver config:", file=logf, flush=True)
    pprint(settings.model_dump(), stream=logf, width=120)

    start_time = time()
    start_time_str = datetime.fromtimestamp(start_time).astimezone().strftime(TIMESTAMP_FMT)
    print(f"Start time: {start_time_str}", file=logf, flush=True)

    if settings.max_workers == 1:
        print("Using in-process solver...", file=logf, flush=True)
        result = PathSearch(grid, config=settings, out=logf).solve()
    else:
        print("Using parallel branch solver...", file=logf, flush=True)
        with get_executor(n_workers=settings.max_workers, settings=settings) as executor:
            try:
                # Note: if a solution is found, `solve_with_parallel_branches` calls
                # `executor.shutdown(wait=False)` for early exit of all worker processes.
                result = solve_with_parallel_branches(
                    executor, puzzle_config, logf, settings=settings
                )
            except BaseException:
                executor.shutdown(wait=False, cancel_futures=True)
                raise

    print(stats_line(result.stats), file=logf, flush=True)
    print(f"Wall time: {time_str(time() - start_time)}", file=logf, flush=True)

    if result.solved and result.solution is not None:
        print("Solution found!", file=logf, flush=True)
        print(format_trace(result.solution), file=logf, flush=True)
        print("", file=logf, flush=True)
        print(render_overlay(grid, result.solution), file=logf, flush=True)
    elif result.status == SolveStatus.BUDGET_EXHAUSTED:
        print("Search budget exhausted, no verdict.", file=logf, flush=True)
    else:
        print("No solution found.", file=logf, flush=True)
    return result
