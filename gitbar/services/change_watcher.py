"""Filesystem change watching with debounced per-repository batches."""

import asyncio
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Callable, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Set

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from gitbar.exceptions import WatcherSubscriptionError
from gitbar.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5
GIT_SEGMENT = ".git"

# Reads (opened / closed-without-write) are what our own probes cause
RELEVANT_EVENT_TYPES = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_CLOSED,
}

RawBatchCallback = Callable[[List[str]], None]


@dataclass(frozen=True)
class ChangeBatch:
    """Repository roots whose .git contents changed during one quiet period."""
    roots: FrozenSet[str]

    def __len__(self) -> int:
        return len(self.roots)


class Subscription(Protocol):
    def close(self) -> None: ...


class ChangeEventSource(Protocol):
    """Delivers batches of raw changed paths under the subscribed roots.

    Callbacks may arrive on any thread, possibly with duplicates.
    """

    def subscribe(self, directories: Sequence[str], callback: RawBatchCallback) -> Subscription: ...


def repo_root_for(path: str) -> Optional[str]:
    """Map a changed path to its repository root by cutting at the .git segment.

    Returns None for paths that are not inside (or equal to) a .git entry.
    """
    parts = PurePath(path).parts
    if GIT_SEGMENT not in parts[1:]:
        return None
    index = parts.index(GIT_SEGMENT, 1)
    return str(PurePath(*parts[:index]))


def affected_roots(paths: Iterable[str]) -> Set[str]:
    """Deduplicated repository roots for every path lying under a .git subtree."""
    roots = set()
    for path in paths:
        root = repo_root_for(path)
        if root is not None:
            roots.add(root)
    return roots


class _ForwardingHandler(FileSystemEventHandler):
    """Watchdog handler that forwards each write-type event as a raw batch."""

    def __init__(self, callback: RawBatchCallback):
        super().__init__()
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in RELEVANT_EVENT_TYPES:
            return
        paths = [os.fsdecode(event.src_path)]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(os.fsdecode(dest_path))
        self._callback(paths)


class _ObserverSubscription:
    def __init__(self, observer):
        self._observer = observer

    def close(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=2)


class WatchdogEventSource:
    """Change-event source backed by a watchdog Observer (inotify/FSEvents/...)."""

    def __init__(self, observer_factory: Callable[[], Observer] = Observer):
        self._observer_factory = observer_factory

    def subscribe(self, directories: Sequence[str], callback: RawBatchCallback) -> Subscription:
        observer = self._observer_factory()
        handler = _ForwardingHandler(callback)
        try:
            for directory in directories:
                observer.schedule(handler, directory, recursive=True)
            observer.start()
        except Exception as e:
            try:
                observer.stop()
            except Exception as stop_error:
                logger.debug(f"[Watcher] Error stopping failed observer: {stop_error}")
            raise WatcherSubscriptionError(directories, str(e)) from e
        logger.debug(f"[Watcher] Watching {len(directories)} directories")
        return _ObserverSubscription(observer)


def _close_quietly(subscription: Subscription) -> None:
    try:
        subscription.close()
    except Exception as e:
        logger.debug(f"[Watcher] Error closing subscription: {e}")


class ChangeWatcher:
    """Turns raw filesystem events into debounced batches of repository roots.

    Batches are pushed onto the ``batches`` queue. Only one subscription is
    live at a time; ``watch`` replaces it and ``stop`` releases it. Closing a
    subscription may join an observer thread, so it always runs off the
    event loop; ``shutdown`` waits for those closes to finish.
    """

    def __init__(
        self,
        source: Optional[ChangeEventSource] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.source = source or WatchdogEventSource()
        self.debounce_seconds = debounce_seconds
        self.batches: "asyncio.Queue[ChangeBatch]" = asyncio.Queue()
        self._subscription: Optional[Subscription] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending: Set[str] = set()
        self._token = 0
        self._degraded = False
        self._closing: Set[asyncio.Task] = set()

    @property
    def is_watching(self) -> bool:
        return self._subscription is not None

    @property
    def is_degraded(self) -> bool:
        """True when the last subscription attempt failed (polling-only mode)."""
        return self._degraded

    @property
    def has_pending(self) -> bool:
        return self._timer is not None

    async def watch(self, directories: Sequence[str]) -> bool:
        """Start watching the given directories, replacing any previous watch.

        Returns:
            True if a subscription is live afterwards
        """
        previous = self._detach()
        token = self._token
        if previous is not None:
            await asyncio.to_thread(_close_quietly, previous)
        if not directories or token != self._token:
            return False

        loop = asyncio.get_running_loop()

        def deliver(paths: List[str]) -> None:
            try:
                loop.call_soon_threadsafe(self._handle_raw_batch, token, list(paths))
            except RuntimeError:
                # Loop already closed during shutdown
                pass

        future = loop.run_in_executor(None, self.source.subscribe, list(directories), deliver)
        try:
            subscription = await asyncio.shield(future)
        except asyncio.CancelledError:
            # The worker thread keeps running; close whatever it returns
            self._track(loop.create_task(self._reap(future)))
            raise
        except WatcherSubscriptionError as e:
            self._degraded = True
            logger.warning(f"File watching disabled, falling back to periodic refresh: {e}")
            return False

        if token != self._token:
            # stop() or another watch() ran while we were subscribing
            await asyncio.to_thread(_close_quietly, subscription)
            return False

        self._subscription = subscription
        return True

    def stop(self) -> None:
        """Tear down the subscription and drop any pending, unflushed roots."""
        subscription = self._detach()
        if subscription is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _close_quietly(subscription)
            return
        self._track(loop.create_task(asyncio.to_thread(_close_quietly, subscription)))

    async def shutdown(self) -> None:
        """Stop watching and wait until every subscription has been closed."""
        self.stop()
        while self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)

    def _detach(self) -> Optional[Subscription]:
        self._token += 1
        self._degraded = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending.clear()

        subscription, self._subscription = self._subscription, None
        return subscription

    def _track(self, task: asyncio.Task) -> None:
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _reap(self, future: "asyncio.Future[Subscription]") -> None:
        try:
            subscription = await future
        except Exception as e:
            logger.debug(f"[Watcher] Abandoned subscription failed: {e}")
            return
        await asyncio.to_thread(_close_quietly, subscription)

    def _handle_raw_batch(self, token: int, paths: List[str]) -> None:
        if token != self._token:
            return  # Event from a torn-down subscription

        roots = affected_roots(paths)
        if not roots:
            return

        self._pending.update(roots)
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._flush)

    def _flush(self) -> None:
        self._timer = None
        if not self._pending:
            return
        batch = ChangeBatch(roots=frozenset(self._pending))
        self._pending.clear()
        logger.debug(f"[Watcher] Emitting batch of {len(batch)} repositories")
        self.batches.put_nowait(batch)
