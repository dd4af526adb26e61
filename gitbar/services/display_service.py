"""Display and formatting service for repository status"""
import json
from typing import Optional

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from gitbar.constants import COLUMNS, LEGEND_TEXT, TIER_COLORS
from gitbar.formatters import (
    abbreviate_path,
    format_changes,
    format_conflicts,
    format_stashes,
    format_summary,
    format_unpushed,
)
from gitbar.models.repo import StatusSnapshot
from gitbar.logging_config import get_logger

logger = get_logger(__name__)


class DisplayService:
    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def build_table(self, snapshot: StatusSnapshot) -> Table:
        """Build a table of repository status, one row per repository."""
        title = "Refreshing…" if snapshot.is_refreshing else None
        table = Table(title=title, title_style="dim")

        for col in COLUMNS:
            table.add_column(col.label, min_width=col.width or None, no_wrap=col.key != "path")

        for repo in snapshot.records:
            row_style = TIER_COLORS.get(repo.tier)
            table.add_row(
                repo.name,
                repo.branch,
                format_changes(repo),
                format_unpushed(repo),
                format_conflicts(repo),
                format_stashes(repo),
                abbreviate_path(repo.path),
                style=row_style,
            )

        return table

    def build_view(self, snapshot: StatusSnapshot, show_legend: bool = False) -> Group:
        """Table plus summary line, suitable for rich.live.Live."""
        parts = [self.build_table(snapshot), Text.from_markup(format_summary(snapshot))]
        if show_legend:
            parts.append(Text(LEGEND_TEXT))
        return Group(*parts)

    def display_snapshot(self, snapshot: StatusSnapshot, show_legend: bool = False) -> None:
        """Print the snapshot as a table followed by the summary."""
        if not snapshot.records:
            self.console.print(format_summary(snapshot))
            self.console.print("[dim]Add directories to watch, e.g. gitbar ~/code[/dim]")
            return
        self.console.print(self.build_view(snapshot, show_legend=show_legend or self.verbose))

    def display_json(self, snapshot: StatusSnapshot) -> None:
        """Print the snapshot as JSON for scripts."""
        self.console.print_json(json.dumps(snapshot.to_dict()))
