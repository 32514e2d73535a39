"""Shared fixtures for the LYNE solver tests."""

import pytest

from lyne.board import Grid
from lyne.solver.config import SolverConfig

EXAMPLE_BOARD = """
R2B
2Gr
gbR
.GB
"""
"""The 4x3 example board: three colors, two numbered cells of capacity 2, one blank."""

LOOP_BOARD = """
.11
A21
.1A
"""
"""A single color that has to pass through the centre cell twice."""

RING_BOARD = """
R1Ggg
11GRg
11ggg
"""
"""The second R endpoint is enclosed by a ring of green cells."""


@pytest.fixture
def settings() -> SolverConfig:
    """Default solver settings, independent of the environment."""
    return SolverConfig(
        deterministic=True,
        diagonals=False,
        max_nodes=None,
        max_workers=1,
        local_pruning=True,
        reachability_pruning=True,
    )


@pytest.fixture
def example_grid() -> Grid:
    return Grid.from_text(EXAMPLE_BOARD, diagonals=True)


@pytest.fixture
def loop_grid() -> Grid:
    return Grid.from_text(LOOP_BOARD)


@pytest.fixture
def example_text() -> str:
    return EXAMPLE_BOARD


@pytest.fixture
def ring_text() -> str:
    return RING_BOARD
