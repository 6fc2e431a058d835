"""
Breaking-news monitor.

Every tick (default: 30s after start, then every 2 minutes) each active
subscription is scanned: its keywords are searched with the subscription's
watermark as the lower date bound, articles published strictly after the
watermark are "new", and the owner is notified if there are any. The
watermark then moves to the scan time whether or not anything was found.

Watermarks live in process memory only. After a restart every subscription
starts again from now - 5 minutes, so articles from that window may be
notified a second time.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import Settings, get_settings
from ..errors import StoreUnavailableError
from ..schemas import BreakingNewsPayload, DateRange, PersistedArticle, Subscription

logger = logging.getLogger(__name__)


class Searcher(Protocol):
    async def search(
        self, keyword: str, date_range: Optional[DateRange] = None, source: Optional[str] = None,
    ) -> List[PersistedArticle]: ...


class SubscriptionSource(Protocol):
    async def list_active(self) -> List[Subscription]: ...


class NotificationSink(Protocol):
    async def notify(self, owner_id: str, payload: Dict[str, Any]) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WatermarkTable:
    """Per-subscription `lastCheckedAt`. Written only by the owning monitor's tick."""

    def __init__(self, lookback: timedelta):
        self.lookback = lookback
        self._marks: Dict[str, datetime] = {}

    def get(self, subscription_id: str, now: datetime) -> datetime:
        """Current watermark, created as now - lookback on first use."""
        if subscription_id not in self._marks:
            self._marks[subscription_id] = now - self.lookback
        return self._marks[subscription_id]

    def advance(self, subscription_id: str, now: datetime) -> None:
        # Never moves backwards, even if the clock does
        current = self._marks.get(subscription_id)
        if current is None or now > current:
            self._marks[subscription_id] = now

    def snapshot(self) -> Dict[str, datetime]:
        return dict(self._marks)


def build_payload(
    articles: List[PersistedArticle], keywords: List[str], preview_size: int = 3
) -> Dict[str, Any]:
    """Notification body: count, keyword list, and a capped article preview."""
    payload = BreakingNewsPayload(
        message=f"{len(articles)} new article(s) found for: {', '.join(keywords)}",
        articles=[a.model_dump(mode="json") for a in articles[:preview_size]],
        keywords=list(keywords),
    )
    return payload.model_dump(mode="json")


class BreakingNewsMonitor:
    """
    Scheduled novelty scanner over active subscriptions.

    Args:
        aggregator: Runs the per-keyword search (normally `NewsAggregator`).
        subscriptions: Source of active subscriptions (normally `Database`).
        notifier: Delivery sink (normally `ConnectionNotifier`).
        settings: Interval, initial delay, lookback, concurrency and preview size.
        clock: Returns the current aware UTC time; injectable for tests.
    """

    def __init__(
        self,
        aggregator: Searcher,
        subscriptions: SubscriptionSource,
        notifier: NotificationSink,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.aggregator = aggregator
        self.subscriptions = subscriptions
        self.notifier = notifier
        self.settings = settings or get_settings()
        self.clock = clock
        self.watermarks = WatermarkTable(timedelta(minutes=self.settings.monitor_lookback_minutes))
        self._semaphore = asyncio.Semaphore(self.settings.monitor_max_concurrent)
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> int:
        """Scan every active subscription once. Returns the number of new articles."""
        subscriptions = await self.subscriptions.list_active()
        if not subscriptions:
            logger.debug("[Monitor] No active subscriptions")
            return 0

        counts = await asyncio.gather(*[self._guarded_scan(s) for s in subscriptions])
        total = sum(counts)
        logger.info(f"[Monitor] Tick done: {len(subscriptions)} subscriptions, {total} new articles")
        return total

    async def _guarded_scan(self, subscription: Subscription) -> int:
        async with self._semaphore:
            try:
                return await self.scan_subscription(subscription)
            except Exception as e:
                # One subscription's failure must not stop the others
                logger.error(f"[Monitor] Scan failed for subscription {subscription.id}: {type(e).__name__}: {e}")
                return 0

    async def scan_subscription(self, subscription: Subscription) -> int:
        """Search the subscription's keywords since its watermark and notify on news."""
        now = self.clock()
        since = self.watermarks.get(subscription.id, now)
        try:
            found = await self._search_keywords(subscription, since)
        finally:
            self.watermarks.advance(subscription.id, now)

        fresh = sorted(
            (a for a in found if a.published_at > since),
            key=lambda a: a.published_at,
            reverse=True,
        )
        if not fresh:
            return 0

        payload = build_payload(fresh, subscription.keywords, self.settings.monitor_preview_size)
        delivered = await self.notifier.notify(subscription.owner_id, payload)
        logger.info(
            f"[Monitor] {len(fresh)} new for {subscription.owner_id} "
            f"({', '.join(subscription.keywords)}), delivered={delivered}"
        )
        return len(fresh)

    async def _search_keywords(self, subscription: Subscription, since: datetime) -> List[PersistedArticle]:
        merged: Dict[str, PersistedArticle] = {}
        for keyword in subscription.keywords:
            try:
                articles = await self.aggregator.search(keyword, DateRange(start=since))
            except StoreUnavailableError:
                raise
            except Exception as e:
                logger.warning(f"[Monitor] Search '{keyword}' failed for {subscription.id}: {type(e).__name__}: {e}")
                continue
            for article in articles:
                merged.setdefault(article.url, article)
        return list(merged.values())

    # ── Scheduling ────────────────────────────────────────────────────

    async def _run(self) -> None:
        await asyncio.sleep(self.settings.monitor_initial_delay_seconds)
        while self._running:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"[Monitor] Tick failed: {type(e).__name__}: {e}")
            await asyncio.sleep(self.settings.monitor_interval_seconds)

    def start(self) -> None:
        """Launch the scan loop as a background task on the running loop."""
        if self.running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"[Monitor] Started (first tick in {self.settings.monitor_initial_delay_seconds:.0f}s, "
            f"every {self.settings.monitor_interval_seconds:.0f}s)"
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self._running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[Monitor] Stopped")
