"""Utility functions."""

from .datetime import (
    from_taskwarrior,
    local_date,
    local_midnight,
    now_utc,
    same_local_day,
    to_taskwarrior,
)
from .text import split_lines, strip_terminator

__all__ = [
    "from_taskwarrior",
    "local_date",
    "local_midnight",
    "now_utc",
    "same_local_day",
    "split_lines",
    "strip_terminator",
    "to_taskwarrior",
]
