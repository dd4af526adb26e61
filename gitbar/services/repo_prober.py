"""Per-repository status probing service"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional

from gitbar.models.repo import DETACHED_BRANCH, RepoRecord
from gitbar.services.process_executor import CommandResult, ProcessExecutor
from gitbar.logging_config import get_logger

logger = get_logger(__name__)

BRANCH_ARGS = ("rev-parse", "--abbrev-ref", "HEAD")
STATUS_ARGS = ("status", "--porcelain")
UNPUSHED_ARGS = ("log", "@{u}..HEAD", "--oneline")
CONFLICT_ARGS = ("diff", "--name-only", "--diff-filter=U")
STASH_ARGS = ("stash", "list")


@dataclass(frozen=True)
class PorcelainCounts:
    """File counts parsed from `git status --porcelain`."""
    modified: int = 0
    staged: int = 0
    untracked: int = 0


def parse_porcelain_status(status_output: str) -> PorcelainCounts:
    """Count staged, modified and untracked entries in porcelain output.

    Column 1 is the index flag and column 2 the worktree flag. A line such
    as "MM file" counts as both staged and modified.
    """
    modified = staged = untracked = 0

    for line in status_output.split("\n"):
        if len(line) < 2:
            continue

        index_status = line[0]
        worktree_status = line[1]

        # Untracked files
        if index_status == "?":
            untracked += 1
            continue

        if index_status != " ":
            staged += 1

        if worktree_status not in (" ", "?"):
            modified += 1

    return PorcelainCounts(modified=modified, staged=staged, untracked=untracked)


def parse_branch(result: CommandResult) -> str:
    """First line of rev-parse output, or "detached" when the command failed."""
    if not result.succeeded or not result.stdout:
        return DETACHED_BRANCH
    return result.stdout.split("\n", 1)[0].strip()


def count_lines(result: CommandResult) -> int:
    """Number of output lines; failures (e.g. no upstream) count as zero."""
    if not result.succeeded or not result.stdout:
        return 0
    return len(result.lines)


class RepoProber:
    """Collects the full status of a repository from five independent git queries."""

    def __init__(self, executor: Optional[ProcessExecutor] = None):
        self.executor = executor or ProcessExecutor()

    async def probe(self, path: str) -> RepoRecord:
        """Fetch the status of the repository at path.

        All five queries run concurrently; the record is built only after
        every one of them has finished.
        """
        branch_result, status_result, unpushed_result, conflict_result, stash_result = (
            await asyncio.gather(
                self.executor.git(*BRANCH_ARGS, cwd=path),
                self.executor.git(*STATUS_ARGS, cwd=path),
                self.executor.git(*UNPUSHED_ARGS, cwd=path),
                self.executor.git(*CONFLICT_ARGS, cwd=path),
                self.executor.git(*STASH_ARGS, cwd=path),
            )
        )

        if status_result.succeeded:
            counts = parse_porcelain_status(status_result.stdout)
        else:
            counts = PorcelainCounts()

        record = RepoRecord(
            path=path,
            branch=parse_branch(branch_result),
            modified_count=counts.modified,
            staged_count=counts.staged,
            untracked_count=counts.untracked,
            unpushed_count=count_lines(unpushed_result),
            conflict_count=count_lines(conflict_result),
            stash_count=count_lines(stash_result),
        )
        logger.debug(f"[Prober] {record.name}: branch={record.branch} tier={record.tier.label}")
        return record

    async def probe_many(
        self, paths: Iterable[str], max_concurrency: Optional[int] = None
    ) -> List[RepoRecord]:
        """Probe many repositories concurrently.

        Args:
            paths: Repository roots to probe
            max_concurrency: Most repositories probed at once (None = unbounded)

        Returns:
            One record per distinct path, in input order
        """
        unique_paths = list(dict.fromkeys(paths))
        if not unique_paths:
            return []

        semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

        async def probe_one(path: str) -> RepoRecord:
            try:
                if semaphore is None:
                    return await self.probe(path)
                async with semaphore:
                    return await self.probe(path)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error probing repository {path}: {e}")
                return RepoRecord.placeholder(path)

        return list(await asyncio.gather(*(probe_one(p) for p in unique_paths)))
