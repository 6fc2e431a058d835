"""
News aggregation engine.

search(keyword) fans out to every selected source adapter concurrently,
concatenates their results in registration order, deduplicates, persists
each survivor by URL, and returns the stored rows newest first.

Partial failures never fail a search: adapters absorb their own errors and
a per-article persistence error drops only that article. What does raise:
caller mistakes (ValidationError), an unreachable store
(StoreUnavailableError), and a caller-imposed timeout.
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from ..errors import StoreUnavailableError, ValidationError
from ..schemas import (
    CanonicalArticle, DateRange, NewsProvider, PersistedArticle, parse_source_filter,
)
from .dedup import ArticleDeduplicator

logger = logging.getLogger(__name__)


class SourceAdapter(Protocol):
    provider: NewsProvider

    async def fetch(
        self, keyword: str, date_range: Optional[DateRange] = None
    ) -> List[CanonicalArticle]: ...


class ArticleStore(Protocol):
    async def upsert_by_url(self, article: CanonicalArticle) -> PersistedArticle: ...


class NewsAggregator:
    """
    Orchestrates adapters → dedup → store for one keyword.

    Args:
        sources: Adapters in registration order (this order breaks dedup ties).
        deduplicator: Two-phase deduplicator.
        store: Anything with `upsert_by_url` (normally `Database`).
    """

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        deduplicator: ArticleDeduplicator,
        store: ArticleStore,
    ):
        self.sources = list(sources)
        self.deduplicator = deduplicator
        self.store = store

    def _select_sources(self, source: Optional[str]) -> List[SourceAdapter]:
        provider = parse_source_filter(source)
        if provider is None:
            return self.sources
        return [s for s in self.sources if s.provider == provider]

    async def search(
        self,
        keyword: str,
        date_range: Optional[DateRange] = None,
        source: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> List[PersistedArticle]:
        """Search every selected provider for `keyword`.

        Args:
            keyword: Search term; must be non-blank.
            date_range: Optional publication bounds passed to adapters.
            source: Provider id, "all", or None.
            timeout: Optional overall bound in seconds. On expiry the
                outstanding adapter calls are cancelled and
                asyncio.TimeoutError propagates.

        Returns:
            Persisted articles ordered by published_at, newest first.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValidationError("keyword must not be empty")
        sources = self._select_sources(source)

        if timeout is not None:
            return await asyncio.wait_for(self._search(keyword, date_range, sources), timeout)
        return await self._search(keyword, date_range, sources)

    async def _search(
        self,
        keyword: str,
        date_range: Optional[DateRange],
        sources: List[SourceAdapter],
    ) -> List[PersistedArticle]:
        # gather preserves argument order, so results stay in registration order
        results = await asyncio.gather(
            *[s.fetch(keyword, date_range) for s in sources], return_exceptions=True
        )
        batches = []
        for s, result in zip(sources, results):
            if isinstance(result, Exception):
                logger.warning(f"[{s.provider.value}] Source fetch failed: {type(result).__name__}: {result}")
                batches.append([])
            elif isinstance(result, BaseException):
                raise result
            else:
                batches.append(result)
        fetched = [article for batch in batches for article in batch]
        logger.info(
            f"Fetched {len(fetched)} articles for '{keyword}' from {len(sources)} sources "
            f"({', '.join(f'{s.provider.value}={len(b)}' for s, b in zip(sources, batches))})"
        )
        if not fetched:
            return []

        unique = await self.deduplicator.deduplicate(fetched)

        persisted: List[PersistedArticle] = []
        for article in unique:
            try:
                persisted.append(await self.store.upsert_by_url(article))
            except StoreUnavailableError:
                raise
            except Exception as e:
                logger.error(f"Failed to persist {article.url}: {type(e).__name__}: {e}")

        # Same URL can surface from two adapters with different titles; the
        # store returns one row for both
        by_id = {}
        for row in persisted:
            by_id.setdefault(row.id, row)
        results = sorted(by_id.values(), key=lambda a: a.published_at, reverse=True)
        logger.info(f"Search '{keyword}': {len(results)} articles after dedup/persist")
        return results
