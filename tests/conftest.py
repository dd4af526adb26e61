"""Pytest fixtures for gitbar tests"""
import asyncio
import tempfile
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import git
import pytest

from gitbar.config import ConfigStore, WatchConfig
from gitbar.models.repo import RepoRecord
from gitbar.services.change_watcher import ChangeWatcher
from gitbar.services.process_executor import CommandResult


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


def init_repo(path: Path, commit: bool = True) -> git.Repo:
    """Initialise a repository on branch main, optionally with one commit."""
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)

    # Configure git user for commits
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")

    if commit:
        readme = path / "README.md"
        readme.write_text("# Test Repository\n")
        repo.index.add(["README.md"])
        repo.index.commit("Initial commit")
        repo.git.branch("-M", "main")
    return repo


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo = init_repo(temp_dir / "test_repo")
    yield repo
    repo.close()


@pytest.fixture
def repo_factory(temp_dir):
    """Create any number of real repositories under temp_dir."""
    created: List[git.Repo] = []

    def make(relative: str, commit: bool = True) -> git.Repo:
        repo = init_repo(temp_dir / relative, commit=commit)
        created.append(repo)
        return repo

    yield make

    for repo in created:
        repo.close()


class FakeExecutor:
    """ProcessExecutor stand-in answering git calls from a table of canned results."""

    def __init__(self, results: Optional[Dict[tuple, CommandResult]] = None, delay: float = 0):
        self.results = results or {}
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0

    async def git(self, *arguments: str, cwd: str) -> CommandResult:
        self.calls.append((cwd, arguments))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.results.get(arguments, CommandResult("", "", 0))
        finally:
            self.active -= 1


class FakeSubscription:
    def __init__(self, source: "FakeEventSource", directories, callback, close_delay: float = 0):
        self.source = source
        self.directories = list(directories)
        self.callback = callback
        self.close_delay = close_delay
        self.closed = False

    def close(self) -> None:
        if self.close_delay:
            time.sleep(self.close_delay)
        self.closed = True


class FakeEventSource:
    """Change-event source that lets tests push raw path batches by hand.

    ``delay`` and ``close_delay`` block the calling thread, like an observer
    starting up or joining.
    """

    def __init__(self, fail: bool = False, delay: float = 0, close_delay: float = 0):
        self.fail = fail
        self.delay = delay
        self.close_delay = close_delay
        self.subscriptions: List[FakeSubscription] = []

    def subscribe(self, directories: Sequence[str], callback: Callable[[List[str]], None]):
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            from gitbar.exceptions import WatcherSubscriptionError

            raise WatcherSubscriptionError(directories, "inotify watch limit reached")
        subscription = FakeSubscription(self, directories, callback, self.close_delay)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def current(self) -> FakeSubscription:
        return self.subscriptions[-1]

    def emit(self, *paths: str, subscription: Optional[FakeSubscription] = None) -> None:
        (subscription or self.current).callback(list(paths))


class FakeScanner:
    """DirectoryScanner stand-in returning a configurable list of paths."""

    def __init__(self, paths: Optional[List[str]] = None):
        self.paths = list(paths or [])
        self.calls: List[tuple] = []

    def find_repos(self, directories, max_depth=2):
        self.calls.append((tuple(directories), max_depth))
        return list(self.paths)


class FakeProber:
    """RepoProber stand-in; records come from a dict and probes can be held open."""

    def __init__(self, records: Optional[Dict[str, RepoRecord]] = None):
        self.records = dict(records or {})
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()
        self.probed: List[List[str]] = []

    def hold(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        return self.gate

    async def probe(self, path: str) -> RepoRecord:
        return self.records.get(path, RepoRecord.placeholder(path))

    async def probe_many(self, paths, max_concurrency=None):
        paths = list(paths)
        self.probed.append(paths)
        # Capture the answers now, as a real probe pass would
        answers = [self.records.get(p, RepoRecord.placeholder(p)) for p in paths]
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        return answers


@pytest.fixture
def fake_source():
    return FakeEventSource()


@pytest.fixture
def make_coordinator(fake_source):
    """Build a coordinator wired to fakes; returns (coordinator, scanner, prober, store)."""
    from gitbar.core import AggregationCoordinator

    created = []

    def make(paths=None, records=None, **config_kwargs):
        config_kwargs.setdefault("directories", ("/w",))
        config_kwargs.setdefault("refresh_interval", 0)
        config_kwargs.setdefault("debounce_seconds", 0.05)
        store = ConfigStore(WatchConfig(**config_kwargs))
        scanner = FakeScanner(paths)
        prober = FakeProber(records)
        watcher = ChangeWatcher(source=fake_source, debounce_seconds=store.current.debounce_seconds)
        coordinator = AggregationCoordinator(store, scanner=scanner, prober=prober, watcher=watcher)
        # Watched directories in tests are not real; watch them anyway
        coordinator._watch_targets = lambda config: list(config.directories)
        created.append(coordinator)
        return coordinator, scanner, prober, store

    return make


def record(path: str, **counts) -> RepoRecord:
    """Shorthand for building a RepoRecord in tests."""
    counts.setdefault("branch", "main")
    return RepoRecord(path=path, **counts)
