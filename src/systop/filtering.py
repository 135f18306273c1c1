"""Filtering and ordering of the process table."""

from collections.abc import Iterable

from systop.models import ProcessRow


def format_cpu(cpu_percent: float) -> str:
    """Format a CPU percentage the way the table shows it."""
    return f"{cpu_percent:.1f}"


def row_matches(row: ProcessRow, needle: str) -> bool:
    """
    Check whether a row matches a lowercased search needle.

    A row matches when its PID, name, or displayed CPU value contains the
    needle. An empty needle matches everything.
    """
    if not needle:
        return True
    return (
        needle in str(row.pid)
        or needle in row.name.lower()
        or needle in format_cpu(row.cpu_percent)
    )


def sort_key(row: ProcessRow) -> tuple[float, int]:
    """Busiest first; equal CPU falls back to ascending PID."""
    return (-row.cpu_percent, row.pid)


def filter_rows(processes: Iterable[ProcessRow], query_text: str) -> list[ProcessRow]:
    """
    Produce the visible row list for a process table and query.

    Args:
        processes: Rows from the latest full refresh.
        query_text: Search text; matched case-insensitively.

    Returns:
        Matching rows ordered by CPU descending, then PID ascending.
    """
    needle = query_text.lower()
    return sorted((row for row in processes if row_matches(row, needle)), key=sort_key)
