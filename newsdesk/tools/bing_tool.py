"""Bing News Search v7 adapter."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import httpx

from ..config import Settings
from ..schemas import CanonicalArticle, DateRange, NewsProvider
from .base import NewsSourceTool, strip_html

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BingNewsTool(NewsSourceTool):
    """Bing News Search. A range starting within the last day asks for `freshness=Day`.

    Args:
        clock: Returns the current aware UTC time; injectable for tests.
    """

    provider = NewsProvider.BING

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(settings, transport)
        self.clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.settings.bing_api_key)

    async def _fetch(
        self, keyword: str, date_range: Optional[DateRange]
    ) -> List[CanonicalArticle]:
        headers = {"Ocp-Apim-Subscription-Key": self.settings.bing_api_key}
        params = {
            "q": keyword,
            "count": min(self.settings.source_max_results, 100),
            "mkt": self.settings.bing_market,
            "sortBy": "Date",
        }
        if date_range and date_range.start:
            if self.clock() - date_range.start <= timedelta(days=1):
                params["freshness"] = "Day"

        async with self._client() as client:
            response = await client.get(
                self.source_config["api_endpoint"], params=params, headers=headers
            )
            response.raise_for_status()
            data = response.json()

        articles = []
        for item in data["value"]:
            image = (item.get("image") or {}).get("thumbnail") or {}
            category = item.get("category")
            article = self._build_article(
                title=strip_html(item.get("name")),
                url=item.get("url"),
                published=item.get("datePublished"),
                description=strip_html(item.get("description")),
                image_url=image.get("contentUrl"),
                category=category.lower() if category else None,
            )
            if article:
                articles.append(article)
        return articles
