"""News processing: deduplication and multi-source aggregation."""

from .aggregator import NewsAggregator
from .dedup import ArticleDeduplicator, title_key

__all__ = ["NewsAggregator", "ArticleDeduplicator", "title_key"]
