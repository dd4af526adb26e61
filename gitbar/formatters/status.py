"""Status formatting utilities."""

from gitbar.constants import SYMBOL_CONFLICT, SYMBOL_STASH, SYMBOL_UNPUSHED, TIER_COLORS
from gitbar.models.repo import RepoRecord, RepoTier, StatusSnapshot


def format_changes(repo: RepoRecord) -> str:
    """
    Format working-tree change counts compactly.

    Args:
        repo: Repository record

    Returns:
        e.g. "3M 1S 2U", or "-" when the tree is clean
    """
    parts = []
    if repo.modified_count:
        parts.append(f"{repo.modified_count}M")
    if repo.staged_count:
        parts.append(f"{repo.staged_count}S")
    if repo.untracked_count:
        parts.append(f"{repo.untracked_count}U")
    return " ".join(parts) if parts else "-"


def format_count(count: int, symbol: str) -> str:
    """Format a badge count, blank when zero."""
    return f"{symbol}{count}" if count else ""


def format_unpushed(repo: RepoRecord) -> str:
    return format_count(repo.unpushed_count, SYMBOL_UNPUSHED)


def format_conflicts(repo: RepoRecord) -> str:
    return format_count(repo.conflict_count, SYMBOL_CONFLICT)


def format_stashes(repo: RepoRecord) -> str:
    return format_count(repo.stash_count, SYMBOL_STASH)


def format_summary(snapshot: StatusSnapshot) -> str:
    """
    Format the one-line overall status shown under the table.

    Args:
        snapshot: Published snapshot

    Returns:
        Summary sentence colored by the overall tier
    """
    if not snapshot.records:
        return "[dim]No repos found[/dim]"

    total = len(snapshot.records)
    if snapshot.overall_tier == RepoTier.CLEAN:
        text = f"All {total} repos clean"
    else:
        noun = "repo needs" if snapshot.dirty_count == 1 else "repos need"
        text = f"{snapshot.dirty_count} of {total} {noun} attention"

    color = TIER_COLORS[snapshot.overall_tier]
    return f"[{color}]{text}[/{color}]"
