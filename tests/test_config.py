"""Tests for the environment-driven solver settings."""

import pytest
from pydantic import ValidationError

from lyne.puzzle_config import parse_configs
from lyne.solver.config import SolverConfig, config


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in ("LYNE_DIAGONALS", "LYNE_MAX_NODES", "LYNE_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    settings = SolverConfig(_env_file=None)
    assert settings.deterministic
    assert not settings.diagonals
    assert settings.max_nodes is None
    assert settings.max_workers == 1
    assert settings.report_interval == 100_000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LYNE_DIAGONALS", "true")
    monkeypatch.setenv("LYNE_MAX_NODES", "5000")
    monkeypatch.setenv("LYNE_MAX_WORKERS", "4")
    settings = SolverConfig(_env_file=None)
    assert settings.diagonals
    assert settings.max_nodes == 5000
    assert settings.max_workers == 4


def test_unknown_setting_is_rejected():
    with pytest.raises(ValidationError):
        SolverConfig(max_depth=3)


def test_invalid_value_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LYNE_MAX_NODES", "lots")
    with pytest.raises(ValidationError):
        SolverConfig(_env_file=None)


def test_board_rules_follow_global_setting(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config, "diagonals", True)
    (board,) = parse_configs("A.\n.A", "diag")
    assert board.diagonals
    assert board.to_grid().neighbors((0, 0)) == [(0, 1), (1, 1), (1, 0)]
