"""
Shared plumbing for news source adapters.

Every adapter honours the same contract: `fetch(keyword, date_range)` returns
a list of CanonicalArticle and never raises. Missing credentials, timeouts,
auth and rate-limit errors, and malformed payloads all reduce to an empty
list plus a log line. Provider-specific mapping (title fallback, HTML
stripping, date formats) stays inside each adapter.
"""

import html
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

import httpx

from ..config import NEWS_SOURCES, Settings, get_settings
from ..schemas import CanonicalArticle, DateRange, NewsProvider

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
# Bing emits 7 fractional digits; strptime accepts at most 6
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def strip_html(text: Optional[str]) -> str:
    """Remove tags and unescape entities (&quot; → ")."""
    if not text:
        return ""
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def parse_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Parse the date formats providers emit into aware UTC.

    Returns None when nothing matches. Callers must skip such items rather
    than stamping them with the current time.
    """
    if not date_str:
        return None
    date_str = _FRACTION_RE.sub(r"\1", date_str.strip())

    formats = [
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S.%f%z",
        "%Y-%m-%d %H:%M:%S",
    ]
    parsed = None
    for fmt in formats:
        try:
            parsed = datetime.strptime(date_str, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        # RFC 822 (Naver pubDate, RSS): "Mon, 03 Mar 2025 14:05:00 +0900"
        try:
            parsed = parsedate_to_datetime(date_str)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed is None:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class NewsSourceTool:
    """
    Base class for one external news provider.

    Args:
        settings: Settings to read credentials and limits from (defaults to get_settings()).
        transport: Optional httpx transport, injected by tests to fake the provider.
    """

    provider: NewsProvider

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self.source_config = NEWS_SOURCES[self.provider.value]
        self.name = self.source_config["name"]

    @property
    def configured(self) -> bool:
        """Whether the provider has the credentials it needs."""
        return True

    def _client(self) -> httpx.AsyncClient:
        # Scoped per call: `async with` releases the connection pool on every
        # exit path, cancellation included.
        return httpx.AsyncClient(
            timeout=self.settings.source_timeout_seconds,
            transport=self._transport,
        )

    async def fetch(
        self, keyword: str, date_range: Optional[DateRange] = None
    ) -> List[CanonicalArticle]:
        """Fetch articles for a keyword. Never raises for provider failures."""
        if not self.configured:
            envs = ", ".join(self.source_config["credential_env"]) or "provider"
            logger.debug(f"[{self.name}] {envs} not set, skipping")
            return []

        try:
            articles = await self._fetch(keyword, date_range)
        except httpx.TimeoutException:
            logger.warning(f"[{self.name}] Timed out after {self.settings.source_timeout_seconds}s for '{keyword}'")
            return []
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                logger.warning(f"[{self.name}] Auth rejected (HTTP {status}), check credentials")
            elif status == 429:
                logger.warning(f"[{self.name}] Rate limited (HTTP 429)")
            else:
                logger.warning(f"[{self.name}] HTTP {status} for '{keyword}'")
            return []
        except httpx.HTTPError as e:
            logger.warning(f"[{self.name}] Request failed: {type(e).__name__}: {e}")
            return []
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"[{self.name}] Malformed response: {type(e).__name__}: {e}")
            return []
        except Exception as e:
            logger.warning(f"[{self.name}] Fetch failed: {type(e).__name__}: {e}")
            return []

        if date_range is not None:
            articles = [a for a in articles if _within(a.published_at, date_range)]

        logger.info(f"[{self.name}] {len(articles)} articles for '{keyword}'")
        return articles

    async def _fetch(
        self, keyword: str, date_range: Optional[DateRange]
    ) -> List[CanonicalArticle]:
        raise NotImplementedError

    def _build_article(
        self,
        *,
        title: Optional[str],
        url: Optional[str],
        published: Optional[str],
        description: Optional[str] = None,
        image_url: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Optional[CanonicalArticle]:
        """Map one raw hit to a CanonicalArticle, or None if it has no URL or date."""
        url = (url or "").strip()
        if not url:
            logger.debug(f"[{self.name}] Skipping item without URL: {title!r}")
            return None
        published_at = parse_datetime(published)
        if published_at is None:
            logger.debug(f"[{self.name}] Skipping item with unparseable date {published!r}: {url}")
            return None

        return CanonicalArticle(
            title=(title or "").strip() or "Untitled",
            description=description or None,
            url=url,
            image_url=image_url or self.source_config["default_image_url"],
            source=self.provider,
            published_at=published_at,
            category=category or self.source_config["default_category"],
        )


def _within(published_at: datetime, date_range: DateRange) -> bool:
    if date_range.start and published_at < date_range.start:
        return False
    if date_range.end and published_at > date_range.end:
        return False
    return True
