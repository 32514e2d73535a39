"""Tests for the solver front end, the parallel branch solver and the CLI."""

import io
from pathlib import Path

import pytest

import lyne
from lyne.board import MalformedBoard
from lyne.puzzle_config import PuzzleConfig, parse_configs
from lyne.solver import solver
from lyne.solver.config import SolverConfig
from lyne.solver.engine import solve
from lyne.solver.parallel import solve_with_parallel_branches
from lyne.solver.result import SolveStatus


def _config(text: str, name: str = "board", diagonals: bool = False) -> PuzzleConfig:
    (config,) = parse_configs(text, name, diagonals=diagonals)
    return config


def test_solve_one_logs_solution(loop_grid, settings: SolverConfig):
    logf = io.StringIO()
    result = solver.solve_one(_config(str(loop_grid), "loop"), logf=logf, settings=settings)
    assert result.solved

    log = logf.getvalue()
    assert "Selected puzzle: loop" in log
    assert "Colors: A" in log
    assert "Using in-process solver..." in log
    assert "Solution found!" in log
    assert "A: (1, 0) -> (1, 1)" in log


def test_solve_one_unsolvable(ring_text: str, settings: SolverConfig):
    logf = io.StringIO()
    result = solver.solve_one(_config(ring_text), logf=logf, settings=settings)
    assert result.status == SolveStatus.UNSOLVABLE
    assert "No solution found." in logf.getvalue()


def test_solve_one_budget(loop_grid, settings: SolverConfig):
    logf = io.StringIO()
    config = settings.model_copy(update={"max_nodes": 1})
    result = solver.solve_one(_config(str(loop_grid)), logf=logf, settings=config)
    assert result.status == SolveStatus.BUDGET_EXHAUSTED
    assert "Search budget exhausted, no verdict." in logf.getvalue()


def test_solve_one_malformed(settings: SolverConfig):
    logf = io.StringIO()
    with pytest.raises(MalformedBoard):
        solver.solve_one(_config("R1R\nR.."), logf=logf, settings=settings)
    assert "Malformed board (endpoint_count)" in logf.getvalue()


def test_get_executor_rejects_too_many_workers(settings: SolverConfig):
    with pytest.raises(ValueError, match="exceeds CPU count"):
        solver.get_executor(n_workers=100_000, settings=settings)


@pytest.mark.parametrize("deterministic", [True, False])
def test_parallel_matches_sequential(
    example_text: str, settings: SolverConfig, deterministic: bool
):
    config = _config(example_text, "example", diagonals=True)
    settings = settings.model_copy(update={"deterministic": deterministic})
    expected = solve(config.to_grid(), config=settings)

    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(executor, config, logf, settings=settings)

    assert result.solved
    # The example board has a single first step, so even a non-deterministic run agrees
    assert result.solution == expected.solution
    assert "Generated 1 branches:" in logf.getvalue()


def test_parallel_deterministic_with_several_branches(settings: SolverConfig):
    # Two first steps; only the second one leads to a solution
    config = _config("A11\n11A")
    expected = solve(config.to_grid(), config=settings)

    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(executor, config, logf, settings=settings)
    assert result.solution == expected.solution


def test_parallel_unsolvable(ring_text: str, settings: SolverConfig):
    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(executor, _config(ring_text), logf, settings=settings)
    assert result.status == SolveStatus.UNSOLVABLE
    assert "All branches processed, no solution found." in logf.getvalue()


def test_parallel_budget(loop_grid, settings: SolverConfig):
    settings = settings.model_copy(update={"max_nodes": 1})
    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(
            executor, _config(str(loop_grid)), logf, settings=settings
        )
    assert result.status == SolveStatus.BUDGET_EXHAUSTED


def test_parallel_without_colors(settings: SolverConfig):
    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(executor, _config("..\n.."), logf, settings=settings)
    assert result.status == SolveStatus.SOLVED
    assert result.solution is not None and result.solution.paths == {}


def test_parallel_first_color_stuck(settings: SolverConfig):
    logf = io.StringIO()
    with solver.get_executor(n_workers=1, settings=settings) as executor:
        result = solve_with_parallel_branches(executor, _config("A.A"), logf, settings=settings)
    assert result.status == SolveStatus.UNSOLVABLE
    assert "cannot leave its start endpoint" in logf.getvalue()


def test_solve_one_through_worker_pool(loop_grid, settings: SolverConfig):
    settings = settings.model_copy(update={"max_workers": None})
    logf = io.StringIO()
    result = solver.solve_one(_config(str(loop_grid), "loop"), logf=logf, settings=settings)
    assert result.solved
    assert "Using parallel branch solver..." in logf.getvalue()


@pytest.fixture
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(solver.solver_config, "log_dir", str(tmp_path / "logs"))
    monkeypatch.setattr(solver.solver_config, "max_workers", 1)
    monkeypatch.setattr(solver.solver_config, "max_nodes", None)
    return tmp_path / "logs"


def test_run_writes_log(log_dir: Path, capsys: pytest.CaptureFixture[str]):
    result = solver.run(_config("A1A\nB1B", "pairs"))
    assert result.solved

    out = capsys.readouterr().out
    assert "A: (0, 0) -> (0, 1) -> (0, 2)" in out
    assert "A-1-A" in out
    assert "Solution found!" in (log_dir / "pairs.log").read_text(encoding="utf-8")


def test_run_unsolvable(log_dir: Path, capsys: pytest.CaptureFixture[str]):
    result = solver.run(_config("A2A\nB2B", "stuck"))
    assert result.status == SolveStatus.UNSOLVABLE
    assert "No solution exists." in capsys.readouterr().out


def test_main(
    log_dir: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
):
    path = tmp_path / "boards.txt"
    path.write_text("R1R\n\nA1A\nB1B\n", encoding="utf-8")
    monkeypatch.setattr(lyne, "argv", ["lyne", str(path)])

    lyne.main()
    out = capsys.readouterr().out
    assert "R: (0, 0) -> (0, 1) -> (0, 2)" in out
    assert "B: (1, 0) -> (1, 1) -> (1, 2)" in out
    assert (log_dir / "boards-1.log").exists()
    assert (log_dir / "boards-2.log").exists()


def test_main_reads_stdin(
    log_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    monkeypatch.setattr(lyne, "argv", ["lyne", "-"])
    monkeypatch.setattr("sys.stdin", io.StringIO("R1R\n"))

    lyne.main()
    assert "R: (0, 0) -> (0, 1) -> (0, 2)" in capsys.readouterr().out
    assert (log_dir / "stdin.log").exists()


def test_main_malformed_board(
    log_dir: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
):
    path = tmp_path / "bad.txt"
    path.write_text("R#R\n", encoding="utf-8")
    monkeypatch.setattr(lyne, "argv", ["lyne", str(path)])

    with pytest.raises(SystemExit) as exc_info:
        lyne.main()
    assert exc_info.value.code == 1
    assert "Malformed board 'bad'" in capsys.readouterr().out


def test_main_usage(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    monkeypatch.setattr(lyne, "argv", ["lyne"])
    with pytest.raises(SystemExit):
        lyne.main()
    assert "Usage:" in capsys.readouterr().out
