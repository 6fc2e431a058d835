"""Naver Search API adapter (Korean news)."""

import logging
from typing import List, Optional

from ..schemas import CanonicalArticle, DateRange, NewsProvider
from .base import NewsSourceTool, strip_html

logger = logging.getLogger(__name__)


class NaverNewsTool(NewsSourceTool):
    """
    Naver news search. Titles and descriptions come back with <b> highlight
    tags and HTML entities, so both are stripped. No images, no categories,
    and no server-side date filter.
    """

    provider = NewsProvider.NAVER

    @property
    def configured(self) -> bool:
        return bool(self.settings.naver_client_id and self.settings.naver_client_secret)

    async def _fetch(
        self, keyword: str, date_range: Optional[DateRange]
    ) -> List[CanonicalArticle]:
        headers = {
            "X-Naver-Client-Id": self.settings.naver_client_id,
            "X-Naver-Client-Secret": self.settings.naver_client_secret,
        }
        params = {
            "query": keyword,
            "display": min(self.settings.source_max_results, 100),
            "start": 1,
            "sort": "date",
        }

        async with self._client() as client:
            response = await client.get(
                self.source_config["api_endpoint"], params=params, headers=headers
            )
            response.raise_for_status()
            data = response.json()

        articles = []
        for item in data["items"]:
            article = self._build_article(
                title=strip_html(item.get("title")),
                url=item.get("link") or item.get("originallink"),
                published=item.get("pubDate"),
                description=strip_html(item.get("description")),
            )
            if article:
                articles.append(article)
        return articles
