"""Shared fixtures: isolated settings, a temp SQLite store, and in-test fakes."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from newsdesk.config import Settings
from newsdesk.database import Database
from newsdesk.schemas import CanonicalArticle, NewsProvider, PersistedArticle

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def build_settings(**overrides) -> Settings:
    """Settings with every provider off, so nothing reaches the network."""
    values = {
        "NEWSAPI_KEY": "",
        "NAVER_CLIENT_ID": "",
        "NAVER_CLIENT_SECRET": "",
        "BING_API_KEY": "",
        "GOOGLE_NEWS_ENABLED": False,
        "OPENAI_API_KEY": "",
        "USE_OLLAMA": False,
        "MONITOR_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'newsdesk.db'}", result_limit=100)
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
def make_article():
    def _make(
        title: str,
        url: str,
        published_at: datetime = NOW,
        source: NewsProvider = NewsProvider.NEWSAPI,
        description: Optional[str] = None,
        category: Optional[str] = "general",
    ) -> CanonicalArticle:
        return CanonicalArticle(
            title=title, url=url, published_at=published_at, source=source,
            description=description, category=category,
        )
    return _make


@pytest.fixture
def make_persisted():
    counter = {"n": 0}

    def _make(
        url: str,
        published_at: datetime = NOW,
        category: Optional[str] = "general",
        title: str = "Headline",
    ) -> PersistedArticle:
        counter["n"] += 1
        return PersistedArticle(
            id=f"id-{counter['n']}", title=title, url=url,
            source=NewsProvider.NEWSAPI, published_at=published_at, category=category,
        )
    return _make


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeSource:
    """Adapter double returning a fixed batch."""

    def __init__(self, provider: NewsProvider, articles=None, delay: float = 0.0):
        self.provider = provider
        self.articles = list(articles or [])
        self.delay = delay
        self.calls = []
        self.cancelled = False

    async def fetch(self, keyword, date_range=None):
        self.calls.append((keyword, date_range))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return list(self.articles)


class FakeOracle:
    """Embedding double keyed by article title (text before the blank line)."""

    def __init__(self, vectors: Dict[str, List[float]], available: bool = True):
        self.vectors = vectors
        self.available = available
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str):
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            return self.vectors.get(text.split("\n\n")[0])
        finally:
            self.in_flight -= 1


class FakeNotifier:
    def __init__(self, delivered: bool = True):
        self.delivered = delivered
        self.sent = []

    async def notify(self, owner_id, payload):
        self.sent.append((owner_id, payload))
        return self.delivered
