"""
Async SQLite (or any SQLAlchemy async URL) store for articles and subscriptions.

Tables:
  - articles: Every article ever persisted, unique by URL (first writer wins)
  - subscriptions: Keyword groups watched by the breaking-news monitor

Timestamps are stored as naive UTC and re-attached to UTC on read, so
SQLite (which has no timezone type) and Postgres behave the same.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import (
    JSON, Boolean, Column, DateTime, String, Text, or_, select,
)
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings
from .errors import StoreUnavailableError
from .schemas import CanonicalArticle, NewsProvider, PersistedArticle, Subscription

logger = logging.getLogger(__name__)

Base = declarative_base()


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ── Models ───────────────────────────────────────────────────────────────────

class ArticleModel(Base):
    """Persisted article. `url` is the identity; `id` is assigned on first insert."""
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text)
    url = Column(String(2048), nullable=False, unique=True, index=True)
    image_url = Column(String(2048))
    source = Column(String(30), nullable=False, index=True)
    published_at = Column(DateTime, nullable=False, index=True)
    category = Column(String(100))
    created_at = Column(DateTime, default=_utcnow)


class SubscriptionModel(Base):
    """Keyword group owned by a user. Written by the CRUD layer, read by the monitor."""
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(100), nullable=False, index=True)
    keywords = Column(JSON, nullable=False)  # list of strings
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=_utcnow)


# ── Database class ───────────────────────────────────────────────────────────

class Database:
    """Async database manager: ArticleStore + SubscriptionSource."""

    def __init__(self, database_url: Optional[str] = None, result_limit: Optional[int] = None):
        settings = get_settings()
        url = database_url or settings.database_url
        self.result_limit = result_limit or settings.query_result_limit

        engine_kw: dict = {"echo": False}
        if "sqlite" in url:
            engine_kw["connect_args"] = {"timeout": 30}
        self.engine = create_async_engine(url, **engine_kw)
        self.SessionLocal = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_tables(self) -> None:
        """Create missing tables (safe to call repeatedly)."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OperationalError, InterfaceError) as e:
            raise StoreUnavailableError(f"Cannot create tables: {e}") from e

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Session that commits on success and maps connection failures."""
        session = self.SessionLocal()
        try:
            yield session
            await session.commit()
        except (OperationalError, InterfaceError) as e:
            await session.rollback()
            raise StoreUnavailableError(f"Article store unavailable: {e}") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ── Articles ──────────────────────────────────────────────────────

    @staticmethod
    def _to_article(row: ArticleModel) -> PersistedArticle:
        return PersistedArticle(
            id=row.id,
            title=row.title,
            description=row.description,
            url=row.url,
            image_url=row.image_url,
            source=NewsProvider(row.source),
            published_at=row.published_at,
            category=row.category,
            created_at=row.created_at,
        )

    async def get_by_url(self, url: str) -> Optional[PersistedArticle]:
        async with self.get_session() as session:
            result = await session.execute(select(ArticleModel).where(ArticleModel.url == url))
            row = result.scalar_one_or_none()
            return self._to_article(row) if row else None

    async def upsert_by_url(self, article: CanonicalArticle) -> PersistedArticle:
        """Insert an article unless its URL is already stored.

        First writer wins: on a URL conflict the existing row is returned
        unchanged and the new title/description are discarded.
        """
        existing = await self.get_by_url(article.url)
        if existing is not None:
            return existing

        row = ArticleModel(
            id=str(uuid.uuid4()),
            title=article.title,
            description=article.description,
            url=article.url,
            image_url=article.image_url,
            source=article.source.value,
            published_at=_naive_utc(article.published_at),
            category=article.category,
            created_at=_utcnow(),
        )
        try:
            async with self.get_session() as session:
                session.add(row)
        except IntegrityError:
            # Lost a race with a concurrent insert of the same URL
            existing = await self.get_by_url(article.url)
            if existing is None:
                raise
            logger.debug(f"URL conflict on insert, returning existing row: {article.url}")
            return existing
        return self._to_article(row)

    async def query_by_filters(
        self,
        keyword: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        source: Optional[NewsProvider] = None,
        limit: Optional[int] = None,
    ) -> List[PersistedArticle]:
        """Stored articles matching all given filters, newest first.

        `keyword` matches case-insensitively against title or description.
        """
        stmt = select(ArticleModel)
        if keyword and keyword.strip():
            pattern = f"%{keyword.strip()}%"
            stmt = stmt.where(or_(
                ArticleModel.title.ilike(pattern),
                ArticleModel.description.ilike(pattern),
            ))
        if start_date:
            stmt = stmt.where(ArticleModel.published_at >= _naive_utc(start_date))
        if end_date:
            stmt = stmt.where(ArticleModel.published_at <= _naive_utc(end_date))
        if source:
            stmt = stmt.where(ArticleModel.source == NewsProvider(source).value)
        stmt = stmt.order_by(ArticleModel.published_at.desc()).limit(limit or self.result_limit)

        async with self.get_session() as session:
            result = await session.execute(stmt)
            return [self._to_article(row) for row in result.scalars().all()]

    async def list_since(self, since: datetime) -> List[PersistedArticle]:
        """Every article published at or after `since`, newest first."""
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.published_at >= _naive_utc(since))
            .order_by(ArticleModel.published_at.desc())
        )
        async with self.get_session() as session:
            result = await session.execute(stmt)
            return [self._to_article(row) for row in result.scalars().all()]

    # ── Subscriptions ─────────────────────────────────────────────────

    async def add_subscription(
        self, owner_id: str, keywords: List[str], is_active: bool = True
    ) -> Subscription:
        """Store a subscription (seeding/tests; user CRUD lives elsewhere)."""
        subscription = Subscription(
            id=str(uuid.uuid4()), owner_id=owner_id, keywords=keywords, is_active=is_active,
        )
        async with self.get_session() as session:
            session.add(SubscriptionModel(
                id=subscription.id,
                owner_id=subscription.owner_id,
                keywords=subscription.keywords,
                is_active=subscription.is_active,
                created_at=_utcnow(),
            ))
        return subscription

    async def list_active(self) -> List[Subscription]:
        """Active subscriptions, oldest first."""
        stmt = (
            select(SubscriptionModel)
            .where(SubscriptionModel.is_active.is_(True))
            .order_by(SubscriptionModel.created_at)
        )
        async with self.get_session() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        subscriptions = []
        for row in rows:
            try:
                subscriptions.append(Subscription(
                    id=row.id, owner_id=row.owner_id,
                    keywords=list(row.keywords or []), is_active=row.is_active,
                ))
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed subscription {row.id}: {e.error_count()} errors")
        return subscriptions
