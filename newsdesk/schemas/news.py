"""
News article models.

CanonicalArticle is the provider-agnostic shape every source adapter emits;
PersistedArticle is the same article after the store has assigned it a
durable identity. The URL is the article's identity in both.

Hierarchy: SourceAdapter → CanonicalArticle → (dedup) → PersistedArticle
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from newsdesk.errors import ValidationError
from .base import NewsProvider


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to timezone-aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CanonicalArticle(BaseModel):
    """Article as produced by a source adapter, before persistence."""
    title: str
    description: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    source: NewsProvider
    published_at: datetime
    category: Optional[str] = None

    # Attached only while semantic dedup runs; never persisted
    embedding: Optional[List[float]] = Field(default=None, exclude=True)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        return v

    @field_validator("published_at")
    @classmethod
    def published_at_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class PersistedArticle(BaseModel):
    """Article row as stored; `id` is the durable identity assigned by the store."""
    id: str
    title: str
    description: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    source: NewsProvider
    published_at: datetime
    category: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("published_at", "created_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v) if v is not None else None


class DateRange(BaseModel):
    """Optional lower/upper publication bounds for a search."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def bounds_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v) if v is not None else None

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @classmethod
    def between(cls, start: Optional[datetime] = None, end: Optional[datetime] = None) -> "DateRange":
        """Build a range, reporting an inverted one as a caller error."""
        if start and end and to_utc(start) > to_utc(end):
            raise ValidationError(
                f"startDate {start.isoformat()} is after endDate {end.isoformat()}"
            )
        return cls(start=start, end=end)
