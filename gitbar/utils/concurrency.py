"""Concurrency sizing helpers for repository probing."""

import os
import sys
from typing import Any, Dict, Optional

# Each repository probe runs five git processes at once
PROCESSES_PER_PROBE = 5


def get_probe_concurrency(user_specified: Optional[int] = None) -> int:
    """Calculate how many repositories to probe at the same time.

    Args:
        user_specified: User-specified limit, if provided

    Returns:
        Number of repositories probed concurrently
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1

    # Probing is process- and I/O-bound: CPU_count + 4 keeps the disk busy
    # without spawning hundreds of git processes on large trees. Cap at 32.
    return min(32, cpu_count + 4)


def get_runtime_info(user_specified: Optional[int] = None) -> Dict[str, Any]:
    """Get information about the probing concurrency configuration.

    Returns:
        Dictionary with interpreter version, CPU count and probe limits
    """
    concurrency = get_probe_concurrency(user_specified)
    return {
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "cpu_count": os.cpu_count() or 1,
        "probe_concurrency": concurrency,
        "max_git_processes": concurrency * PROCESSES_PER_PROBE,
    }
