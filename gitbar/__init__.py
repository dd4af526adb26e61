"""
gitbar - A live status board for every git repository under your project folders
"""

from .__version__ import __version__
from .core import AggregationCoordinator
from .config import WatchConfig, ConfigStore
from .models.repo import RepoRecord, RepoTier, StatusSnapshot

__all__ = [
    "AggregationCoordinator",
    "ConfigStore",
    "RepoRecord",
    "RepoTier",
    "StatusSnapshot",
    "WatchConfig",
    "__version__",
]
