"""LYNE Puzzle Solver.

Connects each color's pair of endpoint cells with a single path so that, together, the paths
enter every cell exactly as often as it allows: once for endpoints and color nodes, N times
for numbered cells, never for blanks.  Uses backtracking with pruning, one color at a time.
"""

import sys
from sys import argv, exit

from .board import MalformedBoard
from .puzzle_config import load_configs, parse_configs
from .solver import solver


def main() -> None:
    """Main entry point for the LYNE solver."""
    # Expect a single argument: path to the board file, or '-' for stdin
    if len(argv) != 2:
        print("Usage: python -m lyne <path_to_board_file | ->")
        exit(1)
    board_path = argv[1]
    if board_path == "-":
        configs = parse_configs(sys.stdin.read(), "stdin")
    else:
        configs = load_configs(board_path)

    if not configs:
        print("No boards found.")
        exit(1)

    failed = False
    for config in configs:
        try:
            solver.run(config)
        except MalformedBoard as e:
            print(f"Malformed board {config.name!r}: {e}")
            failed = True
    if failed:
        exit(1)
