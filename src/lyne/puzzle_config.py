"""Loader for board files."""

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from lyne.board import Grid
from lyne.solver.config import config as solver_config

COMMENT_PREFIX = ";"


@dataclass
class PuzzleConfig:
    """A puzzle configuration: one board and the rules to solve it under."""

    name: str
    """A name for the board, used for log file names."""

    rows: tuple[str, ...]
    """The board rows, top to bottom.

    Endpoints are uppercase letters, color nodes lowercase letters, numbered cells digits and
    blank cells dots ('.').
    """

    diagonals: bool = field(default_factory=lambda: solver_config.diagonals)
    """Whether diagonal steps are allowed."""

    def __post_init__(self) -> None:
        self.rows = tuple(self.rows)

    @property
    def dims(self) -> tuple[int, int]:
        """The height and width of the board."""
        return (len(self.rows), len(self.rows[0]) if self.rows else 0)

    @property
    def board_str(self) -> str:
        """The board rows joined by line breaks."""
        return "\n".join(self.rows)

    def to_grid(self) -> Grid:
        """Parse the board.

        Raises:
            MalformedBoard: If the board is not a valid puzzle.
        """
        return Grid.from_rows(self.rows, diagonals=self.diagonals)

    def __str__(self) -> str:
        """Return a string representation of the Config."""
        rules = "8-way" if self.diagonals else "4-way"
        return f"{self.name} ({self.dims[0]}x{self.dims[1]}, {rules}):\n{self.board_str}"

    def to_dict(self) -> dict:
        """Return a dictionary representation of the Config for serialization.

        This is useful for supplying the Config to child processes via
        `multiprocessing`, which requires arguments to be pickleable.
        """
        return {
            "name": self.name,
            "board": self.board_str,
            "diagonals": self.diagonals,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PuzzleConfig":
        """Create a Config instance from a dictionary representation."""
        return cls(
            name=data["name"],
            rows=tuple(data["board"].split("\n")),
            diagonals=data["diagonals"],
        )


def clean(line: str) -> str:
    """Clean a board line by removing all whitespace."""
    return "".join(line.split())


def parse_configs(text: str, name: str, *, diagonals: bool | None = None) -> list[PuzzleConfig]:
    """Split text holding one or more boards, separated by blank lines, into configs.

    Lines starting with ';' are comments.  If there is more than one board, each is named
    `<name>-<n>` (1-based).
    """
    if diagonals is None:
        diagonals = solver_config.diagonals

    boards: list[list[str]] = []
    board_lines: list[str] = []
    for line in text.splitlines():
        if line.lstrip().startswith(COMMENT_PREFIX):
            continue
        line = clean(line)
        if line:
            board_lines.append(line)
        elif board_lines:
            boards.append(board_lines)
            board_lines = []
    if board_lines:
        boards.append(board_lines)

    if len(boards) == 1:
        return [PuzzleConfig(name=name, rows=tuple(boards[0]), diagonals=diagonals)]
    return [
        PuzzleConfig(name=f"{name}-{i}", rows=tuple(rows), diagonals=diagonals)
        for i, rows in enumerate(boards, start=1)
    ]


def load_configs(configs_path: PathLike | str, *, print_boards: bool = False) -> list[PuzzleConfig]:
    """Load board configurations from the given path.

    Args:
        configs_path: Path to the board file.
        print_boards: Whether to print loaded boards for debugging.
    """
    path = Path(configs_path).resolve()
    print(f"Loading boards from {path}")

    with open(path, "r", encoding="utf-8") as f:
        configs = parse_configs(f.read(), path.stem)

    if print_boards:
        for config in configs:
            print(config)
            print()
    return configs
