"""Core aggregation for gitbar: discovery, probing, watching and ranking."""

import asyncio
import os
from typing import Callable, Dict, Iterable, List, Optional, Set

from gitbar.config import ConfigStore, WatchConfig
from gitbar.models.repo import RepoRecord, RepoTier, StatusSnapshot
from gitbar.services.change_watcher import ChangeWatcher
from gitbar.services.directory_scanner import DirectoryScanner
from gitbar.services.repo_prober import RepoProber
from gitbar.utils.concurrency import get_probe_concurrency
from gitbar.logging_config import get_logger

logger = get_logger(__name__)

SnapshotListener = Callable[[StatusSnapshot], None]


def sort_records(records: Iterable[RepoRecord]) -> List[RepoRecord]:
    """Sort: conflicts first, then dirty, then clean; case-insensitive name within each tier.

    sorted() is stable, so equal keys keep their incoming order.
    """
    return sorted(records, key=lambda r: (r.tier, r.name.casefold()))


class AggregationCoordinator:
    """Owns the repository list and keeps it current.

    Full refreshes rescan the watched directories and are single-flight:
    a request made while one is running is dropped. Partial refreshes
    re-probe only repositories reported by the change watcher. Every
    change to the list is published as a new immutable StatusSnapshot.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        scanner: Optional[DirectoryScanner] = None,
        prober: Optional[RepoProber] = None,
        watcher: Optional[ChangeWatcher] = None,
    ):
        self.config_store = config_store
        self.scanner = scanner or DirectoryScanner()
        self.prober = prober or RepoProber()
        self.watcher = watcher or ChangeWatcher(
            debounce_seconds=config_store.current.debounce_seconds
        )

        self._records: Dict[str, RepoRecord] = {}
        self._snapshot = StatusSnapshot(refreshed_at=None)
        self._listeners: List[SnapshotListener] = []

        self._is_refreshing = False
        self._generation = 0
        self._rescan_pending = False

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._consumer_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()
        self._unsubscribe_config: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Published state

    @property
    def config(self) -> WatchConfig:
        return self.config_store.current

    @property
    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    @property
    def records(self):
        return self._snapshot.records

    @property
    def overall_tier(self) -> RepoTier:
        return self._snapshot.overall_tier

    @property
    def dirty_count(self) -> int:
        return self._snapshot.dirty_count

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_running(self) -> bool:
        return self._loop is not None

    def add_listener(self, listener: SnapshotListener) -> None:
        """Call listener with every newly published snapshot."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self) -> None:
        self._snapshot = StatusSnapshot(
            records=tuple(sort_records(self._records.values())),
            generation=self._generation,
            is_refreshing=self._is_refreshing,
        )
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}")

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> None:
        """Arm the watcher and timer, follow configuration, and run the first full refresh."""
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._unsubscribe_config = self.config_store.subscribe(self._on_config_changed)
        self._consumer_task = asyncio.create_task(self._consume_batches())
        await self._arm()
        await self.refresh()

    async def stop(self) -> None:
        """Release the watcher subscription, timer and any background work."""
        if self._loop is None:
            return
        logger.debug("[Coordinator] Stopping")
        if self._unsubscribe_config is not None:
            self._unsubscribe_config()
            self._unsubscribe_config = None

        self._cancel_timer()
        self.watcher.stop()

        tasks = list(self._background)
        if self._consumer_task is not None:
            tasks.append(self._consumer_task)
            self._consumer_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()
        # A cancelled re-arm may still be subscribing in a worker thread
        await self.watcher.shutdown()
        self._loop = None

    async def __aenter__(self) -> "AggregationCoordinator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background refresh failed: {error}")

    # ------------------------------------------------------------------
    # Watcher and timer wiring

    def _watch_targets(self, config: WatchConfig) -> List[str]:
        targets = []
        for directory in config.directories:
            resolved = os.path.realpath(directory)
            if os.path.isdir(resolved):
                targets.append(resolved)
            else:
                logger.info(f"Not watching missing directory {directory}")
        return list(dict.fromkeys(targets))

    async def _arm(self) -> None:
        config = self.config
        self.watcher.debounce_seconds = config.debounce_seconds
        await self.watcher.watch(self._watch_targets(config))
        self._arm_timer(config.refresh_interval)

    def _arm_timer(self, interval: float) -> None:
        self._cancel_timer()
        if interval <= 0:
            logger.debug("[Coordinator] Periodic refresh disabled")
            return
        self._timer_task = asyncio.create_task(self._run_timer(interval))

    def _cancel_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

    async def _run_timer(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            logger.debug("[Coordinator] Periodic refresh")
            # Run detached so re-arming the timer never cancels a refresh mid-flight
            self._spawn(self.refresh())

    async def _consume_batches(self) -> None:
        while True:
            batch = await self.watcher.batches.get()
            try:
                await self.refresh_repos(batch.roots)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Partial refresh failed: {e}")

    def _on_config_changed(self, old: WatchConfig, new: WatchConfig) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._schedule_reconfigure)

    def _schedule_reconfigure(self) -> None:
        if self._loop is not None:
            self._spawn(self._reconfigure())

    async def _reconfigure(self) -> None:
        logger.info("Configuration changed, re-arming watcher and timer")
        await self._arm()
        if self._is_refreshing:
            # The running pass scanned the old configuration: make its
            # result a no-op and rescan once it finishes.
            self._generation += 1
            self._rescan_pending = True
            return
        await self.refresh()

    # ------------------------------------------------------------------
    # Refreshing

    def request_refresh(self) -> None:
        """Fire-and-forget full refresh for presentation-layer actions."""
        if self._loop is None:
            raise RuntimeError("Coordinator is not running")
        self._spawn(self.refresh())

    async def refresh(self) -> bool:
        """Rescan all watched directories and re-probe every repository found.

        Returns:
            True if a pass ran, False if it was dropped because one was
            already in progress
        """
        if self._is_refreshing:
            logger.debug("[Coordinator] Full refresh already running, request dropped")
            return False

        self._is_refreshing = True
        self._generation += 1
        generation = self._generation
        config = self.config
        self._publish()

        try:
            await self._full_pass(generation, config)
        finally:
            self._is_refreshing = False
            self._publish()

        if self._rescan_pending:
            self._rescan_pending = False
            if self._loop is not None:
                self._spawn(self.refresh())
        return True

    async def _full_pass(self, generation: int, config: WatchConfig) -> None:
        try:
            paths = await asyncio.to_thread(
                self.scanner.find_repos, config.directories, config.scan_depth
            )
        except Exception as e:
            logger.error(f"Repository discovery failed: {e}")
            return

        logger.info(f"Refreshing {len(paths)} repositories (generation {generation})")
        records = await self.prober.probe_many(
            paths, get_probe_concurrency(config.max_concurrent_probes)
        )

        if generation != self._generation:
            logger.debug(
                f"[Coordinator] Discarding stale generation {generation} "
                f"(current {self._generation})"
            )
            return

        self._records = {record.path: record for record in records}

    async def refresh_repos(self, paths: Iterable[str]) -> int:
        """Re-probe only the given, already known repositories.

        Unknown paths are ignored and no repository is ever removed here;
        only a full refresh drops repositories that disappeared.

        Returns:
            Number of records replaced
        """
        known = [path for path in dict.fromkeys(paths) if path in self._records]
        if not known:
            return 0

        logger.debug(f"[Coordinator] Partial refresh of {len(known)} repositories")
        records = await self.prober.probe_many(
            known, get_probe_concurrency(self.config.max_concurrent_probes)
        )

        updated = 0
        for record in records:
            # A full refresh may have dropped the repository while we probed
            if record.path in self._records:
                self._records[record.path] = record
                updated += 1

        if updated:
            self._publish()
        return updated
