"""Keyword subscriptions and the notifications the monitor sends for them."""

from typing import Any, Dict, List
from pydantic import BaseModel, Field, field_validator


class Subscription(BaseModel):
    """A user's keyword group. Read-only to the pipeline."""
    id: str
    owner_id: str
    keywords: List[str]
    is_active: bool = True

    @field_validator("keywords")
    @classmethod
    def keywords_not_empty(cls, v: List[str]) -> List[str]:
        cleaned = []
        for keyword in v:
            keyword = keyword.strip()
            if keyword and keyword not in cleaned:
                cleaned.append(keyword)
        if not cleaned:
            raise ValueError("subscription needs at least one keyword")
        return cleaned


class BreakingNewsPayload(BaseModel):
    """Notification body pushed to a subscription owner."""
    type: str = "breaking_news"
    title: str = "Breaking News Alert"
    message: str
    articles: List[Dict[str, Any]] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
