"""
Per-category trend signals over the trailing window.

Each category's article count in the current window [now - 7d, now) is
compared with the window before it [now - 14d, now - 7d):

    change% = (current - previous) / previous * 100     (100.0 if previous == 0)
    direction = up if change% > +2, down if change% < -2, else stable

Articles without a category are ignored. An empty store yields the fixed
FALLBACK_TRENDS so a new deployment still has something to show.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol

from ..config import FALLBACK_TRENDS, Settings, get_settings
from ..schemas import PersistedArticle, TrendDirection, TrendSignal

logger = logging.getLogger(__name__)


class TrendStore(Protocol):
    async def list_since(self, since: datetime) -> List[PersistedArticle]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def direction_for(change_percent: float, threshold: float = 2.0) -> TrendDirection:
    if change_percent > threshold:
        return TrendDirection.UP
    if change_percent < -threshold:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


class TrendAggregator:
    """
    Args:
        store: Anything with `list_since` (normally `Database`).
        settings: Window length, top-N cap and direction threshold.
        clock: Returns the current aware UTC time; injectable for tests.
    """

    def __init__(
        self,
        store: TrendStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

    async def trends(self) -> List[TrendSignal]:
        now = self.clock()
        window = timedelta(days=self.settings.trend_window_days)
        current_start = now - window
        previous_start = now - 2 * window

        articles = await self.store.list_since(previous_start)

        current: Counter = Counter()
        previous: Counter = Counter()
        for article in articles:
            if not article.category or article.published_at >= now:
                continue
            if article.published_at >= current_start:
                current[article.category] += 1
            else:
                previous[article.category] += 1

        if not current:
            logger.info("No categorized articles in trend window, returning fallback trends")
            return [TrendSignal(**t) for t in FALLBACK_TRENDS]

        signals = []
        for category, count in current.items():
            before = previous.get(category, 0)
            if before:
                change = round((count - before) / before * 100, 1)
            else:
                change = 100.0
            signals.append(TrendSignal(
                category=category,
                direction=direction_for(change, self.settings.trend_change_threshold),
                article_count=count,
                change_percent=change,
            ))

        # Stable sort: equal counts keep category name order
        signals.sort(key=lambda s: s.category)
        signals.sort(key=lambda s: s.article_count, reverse=True)
        top = signals[: self.settings.trend_top_n]
        logger.info(f"Trends: {len(current)} categories in window, returning top {len(top)}")
        return top
