"""Formatting utilities for gitbar.

This package provides formatting functions for displaying repository
status in the CLI.
"""

from .status import (
    format_changes,
    format_count,
    format_unpushed,
    format_conflicts,
    format_stashes,
    format_summary,
)
from .path import abbreviate_path

__all__ = [
    "format_changes",
    "format_count",
    "format_unpushed",
    "format_conflicts",
    "format_stashes",
    "format_summary",
    "abbreviate_path",
]
