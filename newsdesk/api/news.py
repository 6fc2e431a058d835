"""News search router."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from newsdesk.api.dependencies import Aggregator
from newsdesk.api.schemas import ArticleListResponse, Pagination
from newsdesk.errors import ValidationError
from newsdesk.schemas import DateRange

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@router.get("/search", response_model=ArticleListResponse)
async def search_news(
    aggregator: Aggregator,
    keyword: str = Query(..., description="Search term"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    source: Optional[str] = Query(None, description="Provider id or 'all'"),
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", description=f"1-{MAX_PAGE_SIZE}"),
):
    """Search all providers, deduplicate, persist, and return one page, newest first."""
    if page < 1:
        raise ValidationError("Invalid page number")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"Invalid page size (1-{MAX_PAGE_SIZE})")

    date_range = None
    if start_date or end_date:
        date_range = DateRange.between(start_date, end_date)

    articles = await aggregator.search(keyword, date_range=date_range, source=source)

    start = (page - 1) * page_size
    end = start + page_size
    page_articles = articles[start:end]
    return ArticleListResponse(
        keyword=keyword.strip(),
        count=len(page_articles),
        articles=page_articles,
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=len(articles),
            has_more=end < len(articles),
        ),
    )
