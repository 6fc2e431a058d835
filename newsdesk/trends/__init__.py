"""Trend aggregation over persisted articles."""

from .aggregator import TrendAggregator, direction_for

__all__ = ["TrendAggregator", "direction_for"]
