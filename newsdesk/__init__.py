"""
Newsdesk: multi-provider news aggregation with lexical and semantic
deduplication, idempotent persistence, category trends, and a breaking-news
monitor over keyword subscriptions.
"""

__version__ = "1.0.0"
