"""Manual and scheduled ingestion triggers."""

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.core.deps import require_auth, require_cron_secret
from app.core.rate_limit import fetch_reviews_rate, limiter
from app.schemas.ingestion import FetchReviewsOut
from app.services.errors import ReviewServiceError
from app.services.ingestion import run_ingestion

router = APIRouter(tags=["ingestion"])


async def _run(session: AsyncSession, trigger: str) -> FetchReviewsOut:
    logger.bind(trigger=trigger).info("ingestion_requested")
    try:
        return await run_ingestion(session, settings)
    except ReviewServiceError as e:
        logger.bind(trigger=trigger, error=str(e)).error("ingestion_unavailable")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.bind(trigger=trigger, error=str(e)).exception("ingestion_failed")
        raise HTTPException(status_code=500, detail=f"Error fetching reviews: {e}")


@router.post(
    "/fetch-reviews",
    response_model=FetchReviewsOut,
    response_model_exclude_none=True,
    dependencies=[Depends(require_auth)],
)
@limiter.limit(fetch_reviews_rate)
async def fetch_reviews(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> FetchReviewsOut:
    return await _run(session, "manual")


@router.get(
    "/cron/fetch-reviews",
    response_model=FetchReviewsOut,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_secret)],
)
async def cron_fetch_reviews(session: AsyncSession = Depends(get_session)) -> FetchReviewsOut:
    return await _run(session, "cron")
