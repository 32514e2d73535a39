"""Implementation of the parallel solver: branch distribution and result collection."""

import traceback
from collections.abc import Iterable
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from time import time
from typing import Literal, TextIO, TypedDict

from lyne.puzzle_config import PuzzleConfig
from lyne.solver.config import SolverConfig
from lyne.solver.config import config as solver_config
from lyne.solver.engine import PathSearch
from lyne.solver.result import SearchStats, Solution, SolveResult, SolveStatus
from lyne.solver.worker import worker_task


class WorkerTaskPayload(TypedDict):
    """Payload submitted to worker processes."""

    first_move: int
    """1D index of the first color's first step."""
    puzzle_config: dict
    """Dict representation of a PuzzleConfig."""


@dataclass
class Result:
    """Wrapper for worker task results."""

    first_move: int
    status: Literal["success", "no_solution", "budget_exhausted", "error"]
    result: Solution | None
    stats: SearchStats | None = None
    err_msg: str | None = None


def solve_with_parallel_branches(
    executor: ProcessPoolExecutor,
    puzzle_config: PuzzleConfig,
    logf: TextIO,
    *,
    settings: SolverConfig | None = None,
) -> SolveResult:
    """Solve the puzzle by searching each first step of the first color in a worker process.

    In deterministic mode, branch results are consumed in branch order, so the solution is
    the one a sequential search would return.  Otherwise the first successful branch wins.

    Args:
        executor (ProcessPoolExecutor): Executor for managing worker processes.
        puzzle_config (PuzzleConfig): The puzzle to solve.
        logf: File object to log the solving process.
        settings (SolverConfig | None): Solver configuration, defaults to the global config.

    Returns:
        The combined SolveResult.

    Raises:
        RuntimeError: If no solution was found and some worker failed, so the search space
            was not fully covered.
    """
    settings = settings if settings is not None else solver_config
    grid = puzzle_config.to_grid()
    search = PathSearch(grid, config=settings, out=logf)
    branches = search.first_moves()

    if not grid.colors:
        print("No colors to route; solving in-process.", file=logf, flush=True)
        return search.solve()

    print(f"Generated {len(branches)} branches:", file=logf, flush=True)
    for i, idx in enumerate(branches, start=1):
        print(f"  {i:2d}. first step to {grid.get_2d_idx(idx)}", file=logf, flush=True)

    stats = SearchStats()
    if not branches:
        print("The first color cannot leave its start endpoint.", file=logf, flush=True)
        stats.end_time = time()
        return SolveResult(SolveStatus.UNSOLVABLE, None, stats)

    tasks: list[WorkerTaskPayload] = [
        {"first_move": idx, "puzzle_config": puzzle_config.to_dict()} for idx in branches
    ]
    futures = [executor.submit(_worker_task, task) for task in tasks]
    ordered: Iterable[Future[Result]] = futures if settings.deterministic else as_completed(futures)

    budget_hit = False
    errors = 0
    for future in ordered:
        try:
            result = future.result()
        except Exception as e:
            print(f"Error retrieving worker result: {str(e)}", file=logf, flush=True)
            print(traceback.format_exc(), file=logf, flush=True)
            errors += 1
            continue

        if result.stats is not None:
            _merge_stats(stats, result.stats)

        if result.status == "success" and result.result is not None:
            print("Terminating remaining workers...", file=logf, flush=True)
            executor.shutdown(wait=False, cancel_futures=True)
            stats.end_time = time()
            return SolveResult(SolveStatus.SOLVED, result.result, stats)
        elif result.status == "budget_exhausted":
            print(
                f"Branch {grid.get_2d_idx(result.first_move)} ran out of search budget.",
                file=logf,
                flush=True,
            )
            budget_hit = True
        elif result.status == "error":
            print(
                f"Worker for branch {grid.get_2d_idx(result.first_move)} encountered an error:",
                file=logf,
                flush=True,
            )
            print(result.err_msg, file=logf, flush=True)
            errors += 1

    stats.end_time = time()
    if errors:
        raise RuntimeError(f"{errors} branch(es) failed; the search space was not covered.")

    print("All branches processed, no solution found.", file=logf, flush=True)
    status = SolveStatus.BUDGET_EXHAUSTED if budget_hit else SolveStatus.UNSOLVABLE
    return SolveResult(status, None, stats)


def _merge_stats(total: SearchStats, branch: SearchStats) -> None:
    total.nodes_explored += branch.nodes_explored
    total.backtracks += branch.backtracks
    total.max_depth_reached = max(total.max_depth_reached, branch.max_depth_reached)


def _worker_task(args: WorkerTaskPayload) -> Result:
    """Worker task to search the branch starting with a given first step.

    Args:
        args (dict): Dictionary received from `executor.submit` containing:
            - "first_move": 1D index of the first step.
            - "puzzle_config": Dict representation of a PuzzleConfig.

    Returns:
        A Result wrapper.
    """
    try:
        ret = worker_task(**args)
        status: Literal["success", "no_solution", "budget_exhausted"]
        if ret.status == SolveStatus.SOLVED:
            status = "success"
        elif ret.status == SolveStatus.BUDGET_EXHAUSTED:
            status = "budget_exhausted"
        else:
            status = "no_solution"
        return Result(
            first_move=args["first_move"],
            status=status,
            result=ret.solution,
            stats=ret.stats,
        )
    except Exception as e:
        return Result(
            first_move=args.get("first_move", -1),
            status="error",
            result=None,
            err_msg=f"Worker encountered an error: {str(e)}\n{traceback.format_exc()}",
        )
