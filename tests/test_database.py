"""Database: URL identity, filtered queries, subscriptions."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW
from newsdesk.database import Database
from newsdesk.errors import StoreUnavailableError
from newsdesk.schemas import NewsProvider


@pytest.mark.asyncio
async def test_upsert_is_first_writer_wins(db, make_article):
    first = await db.upsert_by_url(make_article("Original", "https://e.com/a", description="v1"))
    second = await db.upsert_by_url(make_article("Rewritten", "https://e.com/a", description="v2"))

    assert second.id == first.id
    assert second.title == "Original"
    assert second.description == "v1"
    assert len(await db.query_by_filters()) == 1


@pytest.mark.asyncio
async def test_concurrent_upserts_of_same_url(db, make_article):
    results = await asyncio.gather(
        db.upsert_by_url(make_article("One", "https://e.com/race")),
        db.upsert_by_url(make_article("Two", "https://e.com/race")),
    )

    assert results[0].id == results[1].id
    assert len(await db.query_by_filters()) == 1


@pytest.mark.asyncio
async def test_timestamps_read_back_as_utc(db, make_article):
    kst = timezone(timedelta(hours=9))
    published = datetime(2025, 3, 10, 21, 0, tzinfo=kst)
    await db.upsert_by_url(make_article("Seoul story", "https://e.com/kst", published))

    row = await db.get_by_url("https://e.com/kst")

    assert row.published_at == datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert row.published_at.tzinfo is not None
    assert row.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_by_url_missing(db):
    assert await db.get_by_url("https://nowhere") is None


@pytest.mark.asyncio
async def test_query_by_filters(db, make_article):
    await db.upsert_by_url(make_article("Apple launches chip", "u1", NOW - timedelta(days=3)))
    await db.upsert_by_url(make_article("Market wrap", "u2", NOW - timedelta(days=1), description="APPLE shares up"))
    await db.upsert_by_url(make_article("Rain in Seoul", "u3", NOW, source=NewsProvider.NAVER))

    by_keyword = await db.query_by_filters(keyword="apple")
    assert [r.url for r in by_keyword] == ["u2", "u1"]

    by_date = await db.query_by_filters(start_date=NOW - timedelta(days=2))
    assert [r.url for r in by_date] == ["u3", "u2"]

    bounded = await db.query_by_filters(start_date=NOW - timedelta(days=4), end_date=NOW - timedelta(days=2))
    assert [r.url for r in bounded] == ["u1"]

    by_source = await db.query_by_filters(source=NewsProvider.NAVER)
    assert [r.url for r in by_source] == ["u3"]

    assert len(await db.query_by_filters(limit=2)) == 2


@pytest.mark.asyncio
async def test_list_since(db, make_article):
    await db.upsert_by_url(make_article("Old", "u1", NOW - timedelta(days=20)))
    await db.upsert_by_url(make_article("New", "u2", NOW - timedelta(days=2)))

    rows = await db.list_since(NOW - timedelta(days=14))

    assert [r.url for r in rows] == ["u2"]


@pytest.mark.asyncio
async def test_subscriptions(db):
    active = await db.add_subscription("user-1", ["Apple", " apple ", "Tesla"])
    await db.add_subscription("user-2", ["Nvidia"], is_active=False)

    listed = await db.list_active()

    assert [s.id for s in listed] == [active.id]
    assert listed[0].keywords == ["Apple", "apple", "Tesla"]
    assert listed[0].owner_id == "user-1"


@pytest.mark.asyncio
async def test_unreachable_store_raises_store_unavailable(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
    try:
        with pytest.raises(StoreUnavailableError):
            await database.create_tables()
    finally:
        await database.dispose()
