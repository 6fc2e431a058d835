"""Google News RSS search adapter (keyless)."""

import logging
from typing import List, Optional
from urllib.parse import quote_plus

import feedparser

from ..schemas import CanonicalArticle, DateRange, NewsProvider
from .base import NewsSourceTool, strip_html

logger = logging.getLogger(__name__)


class GoogleNewsTool(NewsSourceTool):
    """
    Google News search feed. Entry titles carry a " - Publisher" suffix that
    would otherwise split lexical dedup buckets, so it is removed.
    """

    provider = NewsProvider.GOOGLE_NEWS

    @property
    def configured(self) -> bool:
        return self.settings.google_news_enabled

    def _feed_url(self, keyword: str) -> str:
        return (
            f"{self.source_config['api_endpoint']}?q={quote_plus(keyword)}"
            f"&{self.settings.google_news_locale}"
        )

    async def _fetch(
        self, keyword: str, date_range: Optional[DateRange]
    ) -> List[CanonicalArticle]:
        async with self._client() as client:
            response = await client.get(self._feed_url(keyword), follow_redirects=True)
            response.raise_for_status()
            body = response.text

        feed = feedparser.parse(body)
        if feed.bozo and not feed.entries:
            raise ValueError(f"unparseable feed: {feed.get('bozo_exception')}")

        articles = []
        for entry in feed.entries[: self.settings.source_max_results]:
            title = strip_html(entry.get("title", ""))
            if " - " in title:
                title = title.rsplit(" - ", 1)[0]
            article = self._build_article(
                title=title,
                url=entry.get("link"),
                published=entry.get("published") or entry.get("updated"),
                description=strip_html(entry.get("summary", "")),
            )
            if article:
                articles.append(article)
        return articles
