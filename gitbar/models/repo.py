"""Repository status model and related enums"""
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Tuple


class RepoTier(IntEnum):
    """Overall status of a repository, ordered by urgency."""
    CONFLICT = 0
    DIRTY = 1
    CLEAN = 2

    @property
    def label(self) -> str:
        return self.name.lower()


DETACHED_BRANCH = "detached"
UNKNOWN_BRANCH = "unknown"


@dataclass(frozen=True)
class RepoRecord:
    """Status of a single repository from one complete probe pass.

    Records are immutable: a refresh replaces the whole record, so every
    published record reflects exactly one probe.
    """
    path: str
    branch: str = UNKNOWN_BRANCH
    modified_count: int = 0
    staged_count: int = 0
    untracked_count: int = 0
    unpushed_count: int = 0
    conflict_count: int = 0
    stash_count: int = 0
    # The "commits to pull" count is deliberately absent: no query computes it.

    @property
    def id(self) -> str:
        return self.path

    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip(os.sep)) or self.path

    @property
    def total_changes(self) -> int:
        return self.modified_count + self.staged_count + self.untracked_count

    @property
    def is_dirty(self) -> bool:
        return self.total_changes > 0

    @property
    def has_conflicts(self) -> bool:
        return self.conflict_count > 0

    @property
    def tier(self) -> RepoTier:
        if self.has_conflicts:
            return RepoTier.CONFLICT
        if self.is_dirty or self.unpushed_count > 0:
            return RepoTier.DIRTY
        return RepoTier.CLEAN

    @classmethod
    def placeholder(cls, path: str) -> "RepoRecord":
        """Record for a repository whose probe produced nothing usable."""
        return cls(path=path)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "name": self.name,
            "branch": self.branch,
            "tier": self.tier.label,
            "modified": self.modified_count,
            "staged": self.staged_count,
            "untracked": self.untracked_count,
            "unpushed": self.unpushed_count,
            "conflicts": self.conflict_count,
            "stashes": self.stash_count,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusSnapshot:
    """Immutable view of all repositories published after each refresh."""
    records: Tuple[RepoRecord, ...] = ()
    generation: int = 0
    is_refreshing: bool = False
    refreshed_at: Optional[datetime] = field(default_factory=_now)

    @property
    def overall_tier(self) -> RepoTier:
        """Worst tier across all repositories (clean when there are none)."""
        return min((r.tier for r in self.records), default=RepoTier.CLEAN)

    @property
    def dirty_count(self) -> int:
        """Number of repositories that are dirty or have conflicts."""
        return sum(1 for r in self.records if r.tier != RepoTier.CLEAN)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, path: str) -> Optional[RepoRecord]:
        return next((r for r in self.records if r.path == path), None)

    def to_dict(self) -> dict:
        return {
            "generation": self.generation,
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
            "overall_tier": self.overall_tier.label,
            "dirty_count": self.dirty_count,
            "repos": [r.to_dict() for r in self.records],
        }
