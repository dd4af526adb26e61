"""Tests for formatters and DisplayService"""
import json
from io import StringIO

from rich.console import Console

from conftest import record
from gitbar.formatters import (
    abbreviate_path,
    format_changes,
    format_conflicts,
    format_stashes,
    format_summary,
    format_unpushed,
)
from gitbar.models.repo import StatusSnapshot
from gitbar.services.display_service import DisplayService


def make_console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


class TestStatusFormatters:
    """Test per-field formatting."""

    def test_changes(self):
        assert format_changes(record("/w/a")) == "-"
        assert format_changes(record("/w/a", modified_count=3, staged_count=1, untracked_count=2)) == "3M 1S 2U"
        assert format_changes(record("/w/a", untracked_count=4)) == "4U"

    def test_badges_blank_when_zero(self):
        repo = record("/w/a")
        assert format_unpushed(repo) == ""
        assert format_conflicts(repo) == ""
        assert format_stashes(repo) == ""

    def test_badges(self):
        repo = record("/w/a", unpushed_count=2, conflict_count=1, stash_count=5)
        assert format_unpushed(repo) == "↑2"
        assert format_conflicts(repo) == "⚠1"
        assert format_stashes(repo) == "≡5"

    def test_summary(self):
        assert "No repos found" in format_summary(StatusSnapshot())

        clean = StatusSnapshot(records=(record("/w/a"), record("/w/b")))
        assert "All 2 repos clean" in format_summary(clean)

        one = StatusSnapshot(records=(record("/w/a", modified_count=1), record("/w/b")))
        assert "1 of 2 repo needs attention" in format_summary(one)

        two = StatusSnapshot(
            records=(record("/w/a", conflict_count=1), record("/w/b", unpushed_count=1))
        )
        summary = format_summary(two)
        assert "2 of 2 repos need attention" in summary
        assert summary.startswith("[red]")


class TestPathFormatter:
    def test_home_prefix_abbreviated(self):
        assert abbreviate_path("/home/dev/code/app", home="/home/dev") == "~/code/app"
        assert abbreviate_path("/home/dev", home="/home/dev") == "~"

    def test_other_paths_untouched(self):
        assert abbreviate_path("/home/developer/app", home="/home/dev") == "/home/developer/app"
        assert abbreviate_path("/srv/app", home="/home/dev") == "/srv/app"


class TestDisplayService:
    """Test rendering through a recording console."""

    def test_table_rows_follow_snapshot_order(self):
        snapshot = StatusSnapshot(
            records=(
                record("/w/broken", conflict_count=2),
                record("/w/busy", modified_count=1, unpushed_count=3),
                record("/w/calm", branch="develop"),
            )
        )
        console = make_console()
        DisplayService(console=console).display_snapshot(snapshot)

        output = console.file.getvalue()
        assert output.index("broken") < output.index("busy") < output.index("calm")
        assert "Repository" in output
        assert "⚠2" in output
        assert "↑3" in output
        assert "develop" in output
        assert "2 of 3 repos need attention" in output

    def test_refreshing_title(self):
        table = DisplayService(console=make_console()).build_table(
            StatusSnapshot(is_refreshing=True)
        )
        assert table.title == "Refreshing…"
        assert len(table.columns) == 7

    def test_empty_snapshot(self):
        console = make_console()
        DisplayService(console=console).display_snapshot(StatusSnapshot())

        assert "No repos found" in console.file.getvalue()

    def test_legend_in_verbose_mode(self):
        console = make_console()
        snapshot = StatusSnapshot(records=(record("/w/a"),))
        DisplayService(console=console, verbose=True).display_snapshot(snapshot)

        assert "Legend:" in console.file.getvalue()

    def test_json_output(self):
        console = make_console()
        snapshot = StatusSnapshot(
            records=(record("/w/a", staged_count=2),), generation=4
        )
        DisplayService(console=console).display_json(snapshot)

        data = json.loads(console.file.getvalue())
        assert data["generation"] == 4
        assert data["repos"][0]["name"] == "a"
        assert data["repos"][0]["staged"] == 2
        assert data["repos"][0]["tier"] == "dirty"
