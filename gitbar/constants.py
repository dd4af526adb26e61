"""Shared constants for gitbar."""

from dataclasses import dataclass
from typing import List

from gitbar.models.repo import RepoTier


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("repo", "Repository", 24),
    ColumnDefinition("branch", "Branch", 20),
    ColumnDefinition("changes", "Changes", 14),
    ColumnDefinition("unpushed", "Unpushed", 8),
    ColumnDefinition("conflicts", "Conflicts", 9),
    ColumnDefinition("stashes", "Stashes", 7),
    ColumnDefinition("path", "Path", 0),
]


# Symbol constants
SYMBOL_UNPUSHED = "↑"
SYMBOL_CONFLICT = "⚠"
SYMBOL_STASH = "≡"


# Rich color names per tier
TIER_COLORS = {
    RepoTier.CONFLICT: "red",
    RepoTier.DIRTY: "yellow",
    RepoTier.CLEAN: "green",
}


LEGEND_TEXT = """
Legend:
M = Modified files        S = Staged files
U = Untracked files       ↑ = Unpushed commits
⚠ = Merge conflicts       ≡ = Stash entries

Colors:
Red = Merge conflicts
Yellow = Uncommitted or unpushed work
Green = Clean
"""
