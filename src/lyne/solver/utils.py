"""Formatting helpers for solver logs."""

from lyne.solver.result import SearchStats

TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S.%f %Z%z"


def time_str(seconds: float) -> str:
    """Format a duration in seconds as "HH:MM:SS.ss"."""
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{int(hours):02}:{int(minutes):02}:{secs:05.2f}"


def int_comma(n: int) -> str:
    return f"{n:,}"


def stats_line(stats: SearchStats, *, depth: int | None = None) -> str:
    """Summarize search statistics on one line.

    Args:
        stats: Statistics of a running or finished search.
        depth: Current search depth, included for progress reports.
    """
    line = (
        f"Explored {int_comma(stats.nodes_explored)} search nodes "
        f"in {time_str(stats.elapsed)}; max depth {stats.max_depth_reached}"
    )
    if depth is not None:
        line += f", current depth {depth}"
    return f"{line}; {int_comma(stats.backtracks)} backtracks."
