"""Find the best Google Maps link for a persisted review."""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Store
from app.services.google_places import PlaceReview, PlacesV1Client, extract_place_id

_SECONDS_PER_DAY = 86_400


def _authors_match(wanted: str | None, candidate: str) -> bool:
    if not wanted:
        return True
    if not candidate:
        return False
    return wanted == candidate or wanted in candidate or candidate in wanted


def _unix_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def pick_review_link(
    reviews: list[PlaceReview],
    author_name: str | None,
    created_at: datetime | None,
    max_drift_days: int,
) -> str | None:
    """Deep link of the candidate closest in time to ``created_at``.

    Candidates need a deep link and a matching author. Without a target time
    every candidate scores zero and the first one wins.
    """

    target = _unix_seconds(created_at) if created_at is not None else None
    max_drift = max_drift_days * _SECONDS_PER_DAY
    best_url: str | None = None
    best_diff: int | None = None
    for review in reviews:
        if not review.review_url or not _authors_match(author_name, review.author_name):
            continue
        diff = 0 if target is None else abs(review.publish_time - target)
        if target is not None and diff > max_drift:
            continue
        if best_diff is None or diff < best_diff:
            best_url, best_diff = review.review_url, diff
    return best_url


class ReviewUrlResolver:
    """Deep link -> reviews tab -> store map URL.

    ``primary`` may be ``None`` when no API key is configured; the resolver
    then answers from the stored map URL alone.
    """

    def __init__(self, primary: PlacesV1Client | None, max_drift_days: int = 30):
        self._primary = primary
        self._max_drift_days = max_drift_days

    async def resolve(
        self,
        store: Store,
        author_name: str | None = None,
        created_at: datetime | None = None,
    ) -> str | None:
        place_id = store.place_id or extract_place_id(store.google_maps_url)
        if self._primary is None or not place_id:
            return store.google_maps_url or None

        try:
            reviews = await self._primary.fetch_reviews(place_id)
        except Exception as exc:
            logger.bind(store_id=store.id, place_id=place_id, error=str(exc)).opt(exception=exc).warning(
                "review_url_lookup_failed"
            )
            reviews = []
        url = pick_review_link(reviews, author_name, created_at, self._max_drift_days)
        if url:
            return url
        return await self.resolve_place_reviews_url(store)

    async def resolve_place_reviews_url(self, store: Store) -> str | None:
        """Reviews tab of the store's place, else its map URL."""

        place_id = store.place_id or extract_place_id(store.google_maps_url)
        if self._primary is not None and place_id:
            try:
                url = await self._primary.fetch_reviews_uri(place_id)
            except Exception as exc:
                logger.bind(store_id=store.id, place_id=place_id, error=str(exc)).opt(exception=exc).warning(
                    "place_reviews_url_lookup_failed"
                )
            else:
                if url:
                    return url
        return store.google_maps_url or None


async def resolve_review_url(
    session: AsyncSession,
    store_id: str,
    author_name: str | None,
    created_at: datetime | None,
    resolver: ReviewUrlResolver,
) -> str | None:
    """``None`` for an unknown store; otherwise the resolver's answer."""

    store = await session.get(Store, store_id)
    if store is None:
        return None
    return await resolver.resolve(store, author_name, created_at)
