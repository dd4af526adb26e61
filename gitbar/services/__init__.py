"""Services used by the aggregation core."""

from .process_executor import CommandResult, ProcessExecutor
from .directory_scanner import DirectoryScanner
from .repo_prober import RepoProber, parse_porcelain_status
from .change_watcher import ChangeBatch, ChangeWatcher, WatchdogEventSource

__all__ = [
    "ChangeBatch",
    "ChangeWatcher",
    "CommandResult",
    "DirectoryScanner",
    "ProcessExecutor",
    "RepoProber",
    "WatchdogEventSource",
    "parse_porcelain_status",
]
