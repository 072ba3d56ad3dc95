"""Markdown task line parsing."""

from .markers import (
    CHECKBOX_PATTERN,
    MARKERS,
    LineLayout,
    MarkerKind,
    MarkerSpec,
    render_identity,
    scan_line,
)
from .task_parser import parse_line

__all__ = [
    "CHECKBOX_PATTERN",
    "MARKERS",
    "LineLayout",
    "MarkerKind",
    "MarkerSpec",
    "parse_line",
    "render_identity",
    "scan_line",
]
