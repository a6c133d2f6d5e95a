"""Dashboard aggregation endpoint."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.core.deps import require_auth
from app.models.enums import Brand, Granularity
from app.schemas.dashboard import DashboardFilters, DashboardOut
from app.services.aggregation import ALL_STORES, aggregate
from app.services.errors import PeriodRangeTooLargeError

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_auth)])


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)


def _parse_date(value: Optional[str], name: str) -> Optional[date]:
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise _bad_request(f"Invalid {name}: expected YYYY-MM-DD")


def review_filters(
    store_ids: Optional[str] = Query(None, alias="storeIds", description="Comma separated store ids or 'all'"),
    brand: Optional[str] = Query(None, description="AMEMOBA | SAKUMOBA | all"),
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD, inclusive"),
    rating: Optional[str] = Query(None, description="1-5 or 'all'"),
    granularity: Optional[str] = Query(None, description="day | week | month"),
) -> DashboardFilters:
    """Parse the shared filter query parameters; invalid values -> 400."""

    ids = [part.strip() for part in (store_ids or "").split(",") if part.strip()]
    if ALL_STORES in ids:
        ids = []

    parsed_brand = None
    if brand and brand.strip().lower() != "all":
        try:
            parsed_brand = Brand(brand.strip().upper())
        except ValueError:
            raise _bad_request(f"Invalid brand: {brand}")

    parsed_rating = None
    if rating and rating.strip().lower() != "all":
        try:
            parsed_rating = int(rating)
        except ValueError:
            raise _bad_request(f"Invalid rating: {rating}")
        if not 1 <= parsed_rating <= 5:
            raise _bad_request("Rating must be between 1 and 5")

    parsed_granularity = Granularity.DAY
    if granularity and granularity.strip():
        try:
            parsed_granularity = Granularity(granularity.strip().upper())
        except ValueError:
            raise _bad_request(f"Invalid granularity: {granularity}")

    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")
    if start and end and end < start:
        raise _bad_request("endDate must not be before startDate")

    return DashboardFilters(
        store_ids=ids or None,
        brand=parsed_brand,
        start_date=start,
        end_date=end,
        rating=parsed_rating,
        granularity=parsed_granularity,
    )


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard(
    filters: DashboardFilters = Depends(review_filters),
    session: AsyncSession = Depends(get_session),
) -> DashboardOut:
    try:
        return await aggregate(session, filters, max_periods=settings.DASHBOARD_MAX_PERIODS)
    except PeriodRangeTooLargeError as e:
        raise _bad_request(str(e))
    except Exception as e:
        logger.bind(error=str(e)).exception("dashboard_failed")
        raise HTTPException(
            status_code=500,
            detail=f"Error loading dashboard data: {e}",
        )
