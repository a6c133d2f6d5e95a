"""Fetch reviews for every store and persist the new ones.

Stores are processed one at a time. Each store commits its FetchLog and its
reviews independently, so an aborted batch keeps the progress made so far and
one store's failure never stops the others.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import NamedTuple, Sequence
from uuid import uuid4

import httpx
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.core.logging import run_id_ctx_var
from app.models import FetchLog, FetchStatus, Review, ReviewSource
from app.models.base import new_id, utcnow
from app.schemas.ingestion import FetchReviewsOut, StoreFetchResult
from app.services.errors import ConfigurationMissingError
from app.services.google_places import (
    LegacyPlacesClient,
    PlaceReview,
    PlacesV1Client,
    build_http_client,
)
from app.services.review_merger import ReviewMerger
from app.services.stores import DEFAULT_STORES, StoreSeed, ensure_stores


def source_review_key(store_id: str, publish_time: int, author_name: str) -> str:
    """Idempotency key of a review within a store."""

    return f"{store_id}_{publish_time}_{author_name}"


def _posted_at(publish_time: int) -> datetime:
    return datetime.fromtimestamp(publish_time, tz=timezone.utc).replace(tzinfo=None)


class StoreTarget(NamedTuple):
    """Detached copy of the store columns one fetch needs.

    A rollback expires every ORM instance in the session, so the batch works
    from these instead of the loaded ``Store`` rows.
    """

    id: str
    name: str
    brand: str
    place_id: str | None
    google_maps_url: str | None


class ReviewIngestionService:
    def __init__(
        self,
        merger: ReviewMerger,
        *,
        seeds: Sequence[StoreSeed] = DEFAULT_STORES,
        search_prefixes: dict[str, str] | None = None,
    ):
        self._merger = merger
        self._seeds = tuple(seeds)
        self._search_prefixes = search_prefixes or {}

    async def run(self, session: AsyncSession) -> FetchReviewsOut:
        targets = [
            StoreTarget(s.id, s.name, s.brand, s.place_id, s.google_maps_url)
            for s in await ensure_stores(session, self._seeds)
        ]
        results: list[StoreFetchResult] = []
        for target in targets:
            results.append(await self._process_store(session, target))

        outcome = FetchReviewsOut(message="Review fetching completed", results=results)
        logger.bind(
            stores=len(results),
            failed=sum(1 for r in results if r.status == "error"),
            new_reviews=outcome.total_new_reviews,
        ).info("ingestion_completed")
        return outcome

    async def _process_store(self, session: AsyncSession, store: StoreTarget) -> StoreFetchResult:
        store_id, store_name = store.id, store.name
        google_maps_url = store.google_maps_url

        log_id = new_id()
        session.add(
            FetchLog(
                id=log_id,
                store_id=store_id,
                status=FetchStatus.RUNNING.value,
                message="Started fetching reviews",
            )
        )
        await session.commit()

        try:
            reviews = await self._merger.fetch_store_reviews(
                store_name,
                place_id=store.place_id,
                google_maps_url=google_maps_url,
                search_prefix=self._search_prefixes.get(store.brand),
            )
            inserted = await self._persist_reviews(session, store_id, google_maps_url, reviews)
            await session.execute(
                update(FetchLog)
                .where(FetchLog.id == log_id)
                .values(
                    status=FetchStatus.SUCCESS.value,
                    message=f"Successfully fetched {len(reviews)} reviews, {inserted} new",
                    review_count=inserted,
                    completed_at=utcnow(),
                )
            )
            await session.commit()
        except Exception as exc:
            await session.rollback()
            error = str(exc) or type(exc).__name__
            logger.bind(store_id=store_id, store=store_name, error=error).opt(exception=exc).error(
                "store_fetch_failed"
            )
            await session.execute(
                update(FetchLog)
                .where(FetchLog.id == log_id)
                .values(status=FetchStatus.ERROR.value, message=error, completed_at=utcnow())
            )
            await session.commit()
            return StoreFetchResult(store_id=store_id, store_name=store_name, status="error", error=error)

        logger.bind(store_id=store_id, store=store_name, total=len(reviews), new=inserted).info(
            "store_fetch_succeeded"
        )
        return StoreFetchResult(
            store_id=store_id,
            store_name=store_name,
            status="success",
            total_reviews=len(reviews),
            new_reviews=inserted,
        )

    async def _persist_reviews(
        self,
        session: AsyncSession,
        store_id: str,
        google_maps_url: str | None,
        reviews: Sequence[PlaceReview],
    ) -> int:
        inserted = 0
        for review in reviews:
            key = source_review_key(store_id, review.publish_time, review.author_name)
            existing = await session.execute(
                select(Review.id).where(Review.store_id == store_id, Review.source_review_id == key)
            )
            if existing.first() is not None:
                continue
            session.add(
                Review(
                    store_id=store_id,
                    source=ReviewSource.GOOGLE.value,
                    source_review_id=key,
                    rating=review.rating,
                    text=review.text,
                    author_name=review.author_name,
                    created_at=_posted_at(review.publish_time),
                    review_url=review.review_url or google_maps_url,
                    raw_payload=json.dumps(review.to_payload(), ensure_ascii=False),
                )
            )
            await session.flush()
            inserted += 1
        return inserted


async def run_ingestion(
    session: AsyncSession,
    config: Settings = settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    seeds: Sequence[StoreSeed] = DEFAULT_STORES,
) -> FetchReviewsOut:
    """Entry point used by the manual endpoint, the cron endpoint and the CLI.

    Raises :class:`ConfigurationMissingError` before touching any store when
    the Places API key is not configured.
    """

    if not config.GOOGLE_PLACES_API_KEY:
        raise ConfigurationMissingError("Google Places API key not configured")

    run_token = run_id_ctx_var.set(uuid4().hex[:12])
    http = http_client or build_http_client(config.PLACES_HTTP_TIMEOUT_SEC)
    try:
        merger = ReviewMerger(
            PlacesV1Client(http, config.GOOGLE_PLACES_API_KEY, config.PLACES_LANGUAGE),
            LegacyPlacesClient(http, config.GOOGLE_PLACES_API_KEY, config.PLACES_LANGUAGE),
        )
        service = ReviewIngestionService(
            merger, seeds=seeds, search_prefixes=config.FALLBACK_SEARCH_PREFIXES
        )
        return await service.run(session)
    finally:
        if http_client is None:
            await http.aclose()
        run_id_ctx_var.reset(run_token)
