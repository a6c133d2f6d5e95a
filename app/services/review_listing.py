"""Paginated review list for the dashboard's review tab."""

from __future__ import annotations

import math
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Review, Store
from app.schemas.dashboard import DashboardFilters
from app.schemas.reviews import PaginationOut, ReviewListOut, ReviewOut
from app.services.aggregation import apply_review_filters, resolve_store_scope
from app.services.stores import list_stores


class ReviewSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    RATING_HIGH = "rating-high"
    RATING_LOW = "rating-low"


_ORDERINGS = {
    ReviewSort.NEWEST: (Review.created_at.desc(), Review.id),
    ReviewSort.OLDEST: (Review.created_at.asc(), Review.id),
    ReviewSort.RATING_HIGH: (Review.rating.desc(), Review.created_at.desc(), Review.id),
    ReviewSort.RATING_LOW: (Review.rating.asc(), Review.created_at.desc(), Review.id),
}


async def list_reviews(
    session: AsyncSession,
    filters: DashboardFilters,
    sort_by: ReviewSort = ReviewSort.NEWEST,
    page: int = 1,
    limit: int = 50,
) -> ReviewListOut:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    scoped, restricted = resolve_store_scope(await list_stores(session), filters)
    store_ids = [store.id for store in scoped] if restricted else None

    count_query = apply_review_filters(select(func.count(Review.id)), filters, store_ids)
    total_count = int((await session.execute(count_query)).scalar_one())

    query = select(Review, Store.name.label("store_name")).join(Store, Store.id == Review.store_id)
    query = apply_review_filters(query, filters, store_ids)
    query = query.order_by(*_ORDERINGS[ReviewSort(sort_by)]).offset((page - 1) * limit).limit(limit)
    rows = (await session.execute(query)).all()

    return ReviewListOut(
        reviews=[
            ReviewOut(
                id=review.id,
                store_id=review.store_id,
                store_name=store_name,
                source=review.source,
                rating=review.rating,
                text=review.text,
                author_name=review.author_name,
                created_at=review.created_at,
                review_url=review.review_url,
            )
            for review, store_name in rows
        ],
        pagination=PaginationOut(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=math.ceil(total_count / limit),
        ),
    )
