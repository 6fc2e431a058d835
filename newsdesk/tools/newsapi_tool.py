"""NewsAPI.org adapter (`/v2/everything`)."""

import logging
from typing import List, Optional

from ..schemas import CanonicalArticle, DateRange, NewsProvider
from .base import NewsSourceTool

logger = logging.getLogger(__name__)


class NewsAPITool(NewsSourceTool):
    """Full-text search over NewsAPI's 80k+ sources. Free tier: 100 calls/day."""

    provider = NewsProvider.NEWSAPI

    @property
    def configured(self) -> bool:
        return bool(self.settings.newsapi_key)

    async def _fetch(
        self, keyword: str, date_range: Optional[DateRange]
    ) -> List[CanonicalArticle]:
        params = {
            "q": keyword,
            "apiKey": self.settings.newsapi_key,
            "language": self.settings.newsapi_language,
            "sortBy": "publishedAt",
            "pageSize": min(self.settings.source_max_results, 100),
        }
        # NewsAPI only filters at day granularity; exact bounds are applied after
        if date_range and date_range.start:
            params["from"] = date_range.start.strftime("%Y-%m-%d")
        if date_range and date_range.end:
            params["to"] = date_range.end.strftime("%Y-%m-%d")

        async with self._client() as client:
            response = await client.get(self.source_config["api_endpoint"], params=params)
            response.raise_for_status()
            data = response.json()

        if data.get("status") != "ok":
            raise ValueError(f"status={data.get('status')} code={data.get('code')}: {data.get('message')}")

        articles = []
        for item in data["articles"]:
            article = self._build_article(
                title=item.get("title"),
                url=item.get("url"),
                published=item.get("publishedAt"),
                description=item.get("description") or item.get("content"),
                image_url=item.get("urlToImage"),
            )
            if article:
                articles.append(article)
        return articles
