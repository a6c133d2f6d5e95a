"""Pydantic models for the review dashboard endpoint."""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.models.enums import Brand, Granularity
from app.schemas.common import CamelModel


class DashboardFilters(BaseModel):
    """Review/store filter shared by the dashboard and the review list."""

    store_ids: Optional[List[str]] = Field(default=None, description="Store ids; 'all' or empty means every store")
    brand: Optional[Brand] = Field(default=None, description="Restrict to one brand")
    start_date: Optional[date] = Field(default=None, description="Inclusive start (00:00 UTC)")
    end_date: Optional[date] = Field(default=None, description="Inclusive end (through 23:59:59.999999 UTC)")
    rating: Optional[int] = Field(default=None, ge=1, le=5, description="Exact star rating")
    granularity: Granularity = Granularity.DAY


class SummaryOut(CamelModel):
    total_reviews: int = Field(description="Number of matched reviews")
    average_rating: float = Field(description="Mean rating rounded to one decimal, 0 when empty")


class TimeSeriesPoint(CamelModel):
    date: str = Field(description="Bucket key (YYYY-MM-DD)")
    review_count: int
    average_rating: float


class StoreRatingCounts(CamelModel):
    store_id: str
    store_name: str
    rating_counts: Dict[int, int] = Field(description="Star rating (1-5) -> review count")


class StorePeriodRow(CamelModel):
    store_id: str
    store_name: str
    counts: Dict[str, int] = Field(description="Period key -> review count")
    total: int = 0


class StoreByPeriodOut(CamelModel):
    period_keys: List[str] = Field(default_factory=list)
    rows: List[StorePeriodRow] = Field(default_factory=list)


class StoreOption(CamelModel):
    id: str
    name: str
    brand: str


class DashboardOut(CamelModel):
    """Complete dashboard response."""

    summary: SummaryOut
    time_series_data: List[TimeSeriesPoint] = Field(default_factory=list)
    store_comparison: List[StoreRatingCounts] = Field(default_factory=list)
    store_by_period: StoreByPeriodOut = Field(default_factory=StoreByPeriodOut)
    stores: List[StoreOption] = Field(default_factory=list)
