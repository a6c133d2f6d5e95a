"""Pydantic models for review ingestion runs."""

from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class StoreFetchResult(CamelModel):
    """Outcome of one store's fetch-and-persist attempt."""

    store_id: str
    store_name: str
    status: Literal["success", "error"]
    total_reviews: Optional[int] = Field(default=None, description="Reviews returned upstream")
    new_reviews: Optional[int] = Field(default=None, description="Reviews inserted this run")
    error: Optional[str] = None


class FetchReviewsOut(CamelModel):
    message: str
    results: List[StoreFetchResult] = Field(default_factory=list)

    @property
    def total_new_reviews(self) -> int:
        return sum(result.new_reviews or 0 for result in self.results)
