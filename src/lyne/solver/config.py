"""LYNE solver configuration."""

from dotenv import find_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine the environment file path, or None if not found
ENV_FILE = find_dotenv() or None


class SolverConfig(BaseSettings):
    """Configuration settings for the LYNE solver.

    Every field can be set through a `LYNE_`-prefixed environment variable or `.env` entry,
    e.g. `LYNE_DIAGONALS=true`.
    """

    deterministic: bool = True
    """Whether parallel runs must return the same solution as a sequential run. Default: True.

    If False, the first worker to finish with a solution wins.
    """

    diagonals: bool = False
    """Whether paths may also step diagonally (the original game's rules). Default: False."""

    max_nodes: int | None = None
    """Maximum number of search nodes to explore per search. If None (default), no limit."""

    max_workers: int | None = 1
    """Maximum number of worker processes to use.

    1 (default) runs the search in-process. If None, uses os.cpu_count() minus one.
    """

    report_interval: int = 100_000
    """Interval (in number of search nodes) at which to report progress. Default: 100000."""

    local_pruning: bool = True
    """Whether to reject moves that strand a cell without enough usable segments."""

    reachability_pruning: bool = True
    """Whether to reject moves that leave capacity no remaining color can reach."""

    log_dir: str = "logs"
    """Directory for per-board log files written by `solver.run()`."""

    model_config = SettingsConfigDict(
        env_prefix="LYNE_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="forbid",
    )


config = SolverConfig()
