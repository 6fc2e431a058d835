"""
Common enums used across the aggregation core.

Provider identity is a closed enum: adapters, source filters, and persisted
rows all carry a NewsProvider, so a typo in a filter fails loudly instead of
silently matching nothing.
"""

from enum import Enum
from typing import Optional

from newsdesk.errors import ValidationError


class NewsProvider(str, Enum):
    """External search providers (one SourceAdapter each)."""
    NEWSAPI = "newsapi"
    NAVER = "naver"
    BING = "bing"
    GOOGLE_NEWS = "google_news"


class TrendDirection(str, Enum):
    """Direction of a category's article volume between trailing windows."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


ALL_SOURCES = "all"


def parse_source_filter(value: Optional[str]) -> Optional[NewsProvider]:
    """Map a caller-supplied source filter to a provider.

    None, "" and "all" mean every provider (returns None). Anything that is
    not a known provider id is a caller error.
    """
    if value is None:
        return None
    if isinstance(value, NewsProvider):
        return value
    normalized = value.strip().lower()
    if not normalized or normalized == ALL_SOURCES:
        return None
    try:
        return NewsProvider(normalized)
    except ValueError:
        valid = ", ".join([ALL_SOURCES] + [p.value for p in NewsProvider])
        raise ValidationError(f"Unknown source '{value}' (expected one of: {valid})")
