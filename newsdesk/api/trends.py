"""Trend signals router."""

from fastapi import APIRouter

from newsdesk.api.dependencies import Trends
from newsdesk.api.schemas import TrendListResponse

router = APIRouter()


@router.get("", response_model=TrendListResponse)
async def get_trends(trend_aggregator: Trends):
    return TrendListResponse(trends=await trend_aggregator.trends())
