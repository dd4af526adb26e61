"""Utility functions for gitbar."""

from .concurrency import get_probe_concurrency, get_runtime_info, PROCESSES_PER_PROBE

__all__ = [
    "get_probe_concurrency",
    "get_runtime_info",
    "PROCESSES_PER_PROBE",
]
