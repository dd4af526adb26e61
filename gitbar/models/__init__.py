"""Data models for gitbar."""

from .repo import RepoRecord, RepoTier, StatusSnapshot, DETACHED_BRANCH, UNKNOWN_BRANCH

__all__ = ["RepoRecord", "RepoTier", "StatusSnapshot", "DETACHED_BRANCH", "UNKNOWN_BRANCH"]
