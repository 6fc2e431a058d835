"""
Schemas package: all data models for the news aggregation core.

Models are organized by domain in submodules:
  - base.py: NewsProvider, TrendDirection, source filter parsing
  - news.py: CanonicalArticle, PersistedArticle, DateRange
  - subscriptions.py: Subscription, BreakingNewsPayload
  - trends.py: TrendSignal
"""

from newsdesk.schemas.base import (
    NewsProvider, TrendDirection, ALL_SOURCES, parse_source_filter,
)
from newsdesk.schemas.news import CanonicalArticle, PersistedArticle, DateRange, to_utc
from newsdesk.schemas.subscriptions import Subscription, BreakingNewsPayload
from newsdesk.schemas.trends import TrendSignal
