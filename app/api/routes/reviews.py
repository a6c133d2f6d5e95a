"""Paginated review list."""

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes.dashboard import review_filters
from app.core.config import settings
from app.core.db import get_session
from app.core.deps import require_auth
from app.schemas.dashboard import DashboardFilters
from app.schemas.reviews import ReviewListOut
from app.services.review_listing import ReviewSort, list_reviews

router = APIRouter(tags=["reviews"], dependencies=[Depends(require_auth)])


@router.get("/reviews", response_model=ReviewListOut)
async def get_reviews(
    filters: DashboardFilters = Depends(review_filters),
    sort_by: str = Query(ReviewSort.NEWEST.value, alias="sortBy", description="newest | oldest | rating-high | rating-low"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    session: AsyncSession = Depends(get_session),
) -> ReviewListOut:
    try:
        sort = ReviewSort(sort_by)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid sortBy: {sort_by}")

    try:
        return await list_reviews(
            session,
            filters,
            sort_by=sort,
            page=page,
            limit=min(limit, settings.REVIEWS_PAGE_LIMIT_MAX),
        )
    except Exception as e:
        logger.bind(error=str(e)).exception("review_list_failed")
        raise HTTPException(status_code=500, detail=f"Error loading reviews: {e}")
