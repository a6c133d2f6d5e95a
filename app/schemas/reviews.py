"""Pydantic models for review listing and review link endpoints."""

from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel


class ReviewOut(CamelModel):
    id: str
    store_id: str
    store_name: str
    source: str
    rating: int
    text: Optional[str] = None
    author_name: Optional[str] = None
    created_at: datetime
    review_url: Optional[str] = None


class PaginationOut(CamelModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class ReviewListOut(CamelModel):
    reviews: List[ReviewOut]
    pagination: PaginationOut


class ReviewUrlOut(CamelModel):
    url: Optional[str] = None
