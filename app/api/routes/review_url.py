"""Deep-link lookups for individual reviews and store review tabs."""

from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.core.deps import require_auth
from app.models import Store
from app.schemas.reviews import ReviewUrlOut
from app.services.google_places import PlacesV1Client, build_http_client
from app.services.review_url import ReviewUrlResolver, resolve_review_url

router = APIRouter(tags=["review-url"], dependencies=[Depends(require_auth)])


async def get_resolver() -> AsyncIterator[ReviewUrlResolver]:
    """Resolver backed by a short-lived HTTP client; map-URL only without a key."""

    if not settings.GOOGLE_PLACES_API_KEY:
        yield ReviewUrlResolver(None, settings.REVIEW_URL_MAX_DRIFT_DAYS)
        return
    async with build_http_client(settings.PLACES_HTTP_TIMEOUT_SEC) as http:
        primary = PlacesV1Client(http, settings.GOOGLE_PLACES_API_KEY, settings.PLACES_LANGUAGE)
        yield ReviewUrlResolver(primary, settings.REVIEW_URL_MAX_DRIFT_DAYS)


def _parse_created_at(value: Optional[str]) -> Optional[datetime]:
    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid createdAt: expected ISO 8601")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@router.get("/review-url", response_model=ReviewUrlOut)
async def get_review_url(
    store_id: str = Query(..., alias="storeId"),
    author_name: Optional[str] = Query(None, alias="authorName"),
    created_at: Optional[str] = Query(None, alias="createdAt", description="ISO 8601 posting time"),
    session: AsyncSession = Depends(get_session),
    resolver: ReviewUrlResolver = Depends(get_resolver),
) -> ReviewUrlOut:
    target = _parse_created_at(created_at)
    if await session.get(Store, store_id) is None:
        raise HTTPException(status_code=404, detail="Store not found")
    url = await resolve_review_url(session, store_id, author_name or None, target, resolver)
    return ReviewUrlOut(url=url)


@router.get("/place-reviews-url", response_model=ReviewUrlOut)
async def get_place_reviews_url(
    store_id: str = Query(..., alias="storeId"),
    session: AsyncSession = Depends(get_session),
    resolver: ReviewUrlResolver = Depends(get_resolver),
) -> ReviewUrlOut:
    store = await session.get(Store, store_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found")
    return ReviewUrlOut(url=await resolver.resolve_place_reviews_url(store))
