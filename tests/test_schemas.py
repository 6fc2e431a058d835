"""Model validation: titles, UTC normalization, ranges, source filters."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from newsdesk.errors import ValidationError
from newsdesk.schemas import (
    CanonicalArticle, DateRange, NewsProvider, Subscription, parse_source_filter,
)


def test_blank_title_rejected():
    with pytest.raises(PydanticValidationError):
        CanonicalArticle(
            title="   ", url="u1", source=NewsProvider.NEWSAPI,
            published_at=datetime(2025, 3, 10, tzinfo=timezone.utc),
        )


def test_published_at_normalized_to_utc():
    article = CanonicalArticle(
        title="t", url="u1", source="naver",
        published_at=datetime(2025, 3, 10, 9, 0, tzinfo=timezone(timedelta(hours=9))),
    )
    assert article.published_at == datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)
    assert article.published_at.utcoffset() == timedelta(0)
    assert article.source is NewsProvider.NAVER


def test_naive_datetime_taken_as_utc():
    article = CanonicalArticle(title="t", url="u1", source="bing", published_at=datetime(2025, 3, 10, 9, 0))
    assert article.published_at.tzinfo == timezone.utc


def test_embedding_excluded_from_dump():
    article = CanonicalArticle(
        title="t", url="u1", source="bing", published_at=datetime(2025, 3, 10), embedding=[0.1],
    )
    assert "embedding" not in article.model_dump()


def test_date_range_between():
    start = datetime(2025, 3, 1, tzinfo=timezone.utc)
    end = datetime(2025, 3, 2, tzinfo=timezone.utc)

    assert DateRange.between(start, end).end == end
    assert DateRange.between(None, end).start is None
    with pytest.raises(ValidationError):
        DateRange.between(end, start)


@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("", None),
    ("all", None),
    (" ALL ", None),
    ("naver", NewsProvider.NAVER),
    ("Google_News", NewsProvider.GOOGLE_NEWS),
])
def test_parse_source_filter(value, expected):
    assert parse_source_filter(value) == expected


def test_parse_source_filter_unknown():
    with pytest.raises(ValidationError, match="Unknown source"):
        parse_source_filter("nytimes")


def test_subscription_needs_keywords():
    with pytest.raises(PydanticValidationError):
        Subscription(id="s1", owner_id="o1", keywords=["  ", ""])
