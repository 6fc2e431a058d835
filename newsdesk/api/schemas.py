"""API response schemas."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from newsdesk.schemas import PersistedArticle, TrendSignal


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    has_more: bool = Field(alias="hasMore")


class ArticleListResponse(BaseModel):
    keyword: str
    count: int
    articles: List[PersistedArticle]
    pagination: Pagination


class TrendListResponse(BaseModel):
    trends: List[TrendSignal]
