"""Configuration handling for gitbar"""

import os
from dataclasses import dataclass, fields, replace as dataclass_replace
from threading import Lock
from typing import Callable, List, Optional, Sequence, Tuple

from gitbar.exceptions import ConfigurationError
from gitbar.logging_config import get_logger

logger = get_logger(__name__)

MIN_SCAN_DEPTH = 1
MAX_SCAN_DEPTH = 5

# Human-readable choices offered by presentation layers
REFRESH_OPTIONS: List[Tuple[str, float]] = [
    ("30 seconds", 30),
    ("1 minute", 60),
    ("5 minutes", 300),
    ("Manual only", 0),
]


def _normalize_directories(directories: Sequence[str]) -> Tuple[str, ...]:
    """Expand, absolutize and deduplicate directories keeping first-seen order."""
    seen = set()
    result = []
    for directory in directories:
        path = os.path.abspath(os.path.expanduser(str(directory)))
        if path not in seen:
            seen.add(path)
            result.append(path)
    return tuple(result)


@dataclass(frozen=True)
class WatchConfig:
    """Configuration for gitbar with validation."""

    # Directories to scan for git repositories, in display order
    directories: Tuple[str, ...] = ()

    # How many levels below each directory to search for .git entries
    scan_depth: int = 2

    # Seconds between automatic full refreshes (0 = manual only)
    refresh_interval: float = 60

    # Quiet period before a burst of filesystem events becomes one refresh
    debounce_seconds: float = 0.5

    # Cap on repositories probed at once (None = auto-detect)
    max_concurrent_probes: Optional[int] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        object.__setattr__(self, "directories", _normalize_directories(self.directories))
        self._validate_scan_depth()
        self._validate_refresh_interval()
        self._validate_debounce()
        self._validate_max_concurrent_probes()

    def _validate_scan_depth(self):
        """Validate scan_depth is within the supported range."""
        if isinstance(self.scan_depth, bool) or not isinstance(self.scan_depth, int):
            raise ConfigurationError("scan_depth", f"must be an integer, got {self.scan_depth!r}")
        if not MIN_SCAN_DEPTH <= self.scan_depth <= MAX_SCAN_DEPTH:
            raise ConfigurationError(
                "scan_depth",
                f"must be between {MIN_SCAN_DEPTH} and {MAX_SCAN_DEPTH}, got {self.scan_depth}",
            )

    def _validate_refresh_interval(self):
        """Validate refresh_interval is not negative."""
        if self.refresh_interval < 0:
            raise ConfigurationError(
                "refresh_interval", f"cannot be negative, got {self.refresh_interval}"
            )

    def _validate_debounce(self):
        """Validate debounce_seconds is positive."""
        if self.debounce_seconds <= 0:
            raise ConfigurationError(
                "debounce_seconds", f"must be positive, got {self.debounce_seconds}"
            )

    def _validate_max_concurrent_probes(self):
        """Validate max_concurrent_probes is positive when given."""
        if self.max_concurrent_probes is not None and self.max_concurrent_probes < 1:
            raise ConfigurationError(
                "max_concurrent_probes",
                f"must be at least 1, got {self.max_concurrent_probes}",
            )

    @property
    def polling_enabled(self) -> bool:
        return self.refresh_interval > 0

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {
            "directories": list(self.directories),
            "scan_depth": self.scan_depth,
            "refresh_interval": self.refresh_interval,
            "debounce_seconds": self.debounce_seconds,
            "max_concurrent_probes": self.max_concurrent_probes,
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> "WatchConfig":
        """Create WatchConfig from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        if "directories" in filtered:
            filtered["directories"] = tuple(filtered["directories"])
        return cls(**filtered)


ConfigListener = Callable[[WatchConfig, WatchConfig], None]


class ConfigStore:
    """Holds the current WatchConfig and notifies subscribers when it changes.

    The store does not persist anything; whoever owns persistence pushes new
    values in with update() or replace().
    """

    def __init__(self, config: Optional[WatchConfig] = None):
        self._config = config or WatchConfig()
        self._listeners: List[ConfigListener] = []
        self._lock = Lock()

    @property
    def current(self) -> WatchConfig:
        return self._config

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        """Register a listener called with (old, new) on every change.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes) -> WatchConfig:
        """Apply field changes, validate, and notify listeners."""
        return self.replace(dataclass_replace(self._config, **changes))

    def replace(self, config: WatchConfig) -> WatchConfig:
        """Swap in a complete new configuration and notify listeners if it differs."""
        with self._lock:
            old = self._config
            if config == old:
                return old
            self._config = config
            listeners = list(self._listeners)

        logger.debug(f"Configuration changed: {config.to_dict()}")
        for listener in listeners:
            try:
                listener(old, config)
            except Exception as e:
                logger.error(f"Configuration listener failed: {e}")
        return config

    def add_directory(self, path: str) -> WatchConfig:
        """Add a directory to the watch list if not already present."""
        return self.update(directories=self._config.directories + (path,))

    def remove_directory(self, path: str) -> WatchConfig:
        """Remove a specific directory from the watch list."""
        target = os.path.abspath(os.path.expanduser(path))
        return self.update(
            directories=tuple(d for d in self._config.directories if d != target)
        )
