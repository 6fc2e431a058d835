"""Trend signal model returned by the TrendAggregator."""

from pydantic import BaseModel, Field

from .base import TrendDirection


class TrendSignal(BaseModel):
    """Per-category article volume over the trailing window."""
    category: str
    direction: TrendDirection
    article_count: int = Field(ge=0)
    change_percent: float

    class Config:
        use_enum_values = True
