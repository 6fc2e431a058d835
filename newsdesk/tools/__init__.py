"""
External integrations: news source adapters, the embedding oracle, and the
notification sink.
"""

from typing import List, Optional

import httpx

from ..config import DEFAULT_ACTIVE_SOURCES, Settings, get_settings
from .base import NewsSourceTool, parse_datetime, strip_html
from .bing_tool import BingNewsTool
from .embeddings import EmbeddingTool, article_text, cosine_similarity
from .google_news_tool import GoogleNewsTool
from .naver_tool import NaverNewsTool
from .newsapi_tool import NewsAPITool
from .notifier import ConnectionNotifier

SOURCE_TOOLS = {
    "newsapi": NewsAPITool,
    "naver": NaverNewsTool,
    "bing": BingNewsTool,
    "google_news": GoogleNewsTool,
}


def build_source_tools(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[NewsSourceTool]:
    """Instantiate every adapter in registration order."""
    settings = settings or get_settings()
    return [SOURCE_TOOLS[source_id](settings, transport=transport) for source_id in DEFAULT_ACTIVE_SOURCES]


__all__ = [
    "NewsSourceTool",
    "NewsAPITool",
    "NaverNewsTool",
    "BingNewsTool",
    "GoogleNewsTool",
    "EmbeddingTool",
    "ConnectionNotifier",
    "build_source_tools",
    "cosine_similarity",
    "article_text",
    "parse_datetime",
    "strip_html",
]
