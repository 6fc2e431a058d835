"""FastAPI dependency injection -- Depends() patterns using app.state from lifespan."""

from typing import Annotated

from fastapi import Depends, Request

from newsdesk.config import Settings
from newsdesk.news.aggregator import NewsAggregator
from newsdesk.trends.aggregator import TrendAggregator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_aggregator(request: Request) -> NewsAggregator:
    return request.app.state.aggregator


def get_trend_aggregator(request: Request) -> TrendAggregator:
    return request.app.state.trend_aggregator


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Aggregator = Annotated[NewsAggregator, Depends(get_aggregator)]
Trends = Annotated[TrendAggregator, Depends(get_trend_aggregator)]
