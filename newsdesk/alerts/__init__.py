"""Breaking-news monitoring over keyword subscriptions."""

from .monitor import BreakingNewsMonitor, WatermarkTable, build_payload

__all__ = ["BreakingNewsMonitor", "WatermarkTable", "build_payload"]
