"""Core aggregation engine for gitbar."""

from .coordinator import AggregationCoordinator, sort_records

__all__ = ["AggregationCoordinator", "sort_records"]
