"""Repository discovery service"""

import os
from typing import Iterable, List

from gitbar.logging_config import get_logger

logger = get_logger(__name__)

GIT_ENTRY = ".git"


def is_repo_root(directory: str) -> bool:
    """A directory is a repo root if it holds a .git folder (or .git file for worktrees/submodules)."""
    return os.path.lexists(os.path.join(directory, GIT_ENTRY))


class DirectoryScanner:
    """Recursively discovers git repositories within watched directories."""

    def find_repos(self, directories: Iterable[str], max_depth: int = 2) -> List[str]:
        """Scan the given directories for git repos up to max_depth levels deep.

        Args:
            directories: Root directories to scan (depth 0)
            max_depth: Deepest level at which a directory is still examined

        Returns:
            Absolute repository root paths, deduplicated, in discovery order
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")

        results: List[str] = []
        for directory in directories:
            root = os.path.realpath(os.path.expanduser(directory))
            if not os.path.isdir(root):
                logger.debug(f"[Scanner] Skipping missing directory {root}")
                continue
            self._scan(root, 0, max_depth, results)

        # Deduplicate while preserving order
        repos = list(dict.fromkeys(results))
        logger.debug(f"[Scanner] Found {len(repos)} repositories")
        return repos

    def _scan(self, directory: str, depth: int, max_depth: int, results: List[str]) -> None:
        if depth > max_depth:
            return

        if is_repo_root(directory):
            results.append(directory)
            return  # Don't scan inside a git repo for nested repos

        try:
            with os.scandir(directory) as entries:
                children = [
                    entry.path
                    for entry in entries
                    if not entry.name.startswith(".") and entry.is_dir(follow_symlinks=False)
                ]
        except OSError as e:
            logger.debug(f"[Scanner] Cannot read {directory}: {e}")
            return

        for child in sorted(children):
            self._scan(child, depth + 1, max_depth, results)
