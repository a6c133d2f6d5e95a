"""Combine both Places adapters into one deduplicated review list per store."""

from __future__ import annotations

import asyncio
from typing import Iterable

from loguru import logger

from app.services.google_places import (
    LegacyPlacesClient,
    PlaceReview,
    PlacesV1Client,
    extract_place_id,
)


def merge_reviews(*sources: Iterable[PlaceReview]) -> list[PlaceReview]:
    """Deduplicate on ``author|publish_time`` and sort newest first.

    Sources are consumed in order and the first occurrence of a key wins, so
    passing the v1 results first keeps the copy that carries a deep link.
    Reviews by empty-named authors posted in the same second collapse into
    one; upstream exposes no stable review id to tell them apart.
    """

    seen: set[str] = set()
    merged: list[PlaceReview] = []
    for source in sources:
        for review in source:
            if review.dedup_key in seen:
                continue
            seen.add(review.dedup_key)
            merged.append(review)
    merged.sort(key=lambda review: review.publish_time, reverse=True)
    return merged


class ReviewMerger:
    """Resolves a store's place and queries both adapters for it."""

    def __init__(self, primary: PlacesV1Client, legacy: LegacyPlacesClient):
        self._primary = primary
        self._legacy = legacy

    async def _fetch_both(self, place_id: str) -> tuple[list[PlaceReview], list[PlaceReview]]:
        """Query both adapters; one failing adapter only costs its own reviews.

        Raises the first error when both adapters fail.
        """

        results = await asyncio.gather(
            self._primary.fetch_reviews(place_id),
            self._legacy.fetch_reviews(place_id),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            if not isinstance(failure, Exception):
                raise failure
        if len(failures) == len(results):
            raise failures[0]

        primary, legacy = results
        for adapter, result in (("places_v1", primary), ("places_legacy", legacy)):
            if isinstance(result, Exception):
                logger.bind(place_id=place_id, adapter=adapter, error=str(result)).warning(
                    "places_adapter_failed"
                )
        return (
            primary if isinstance(primary, list) else [],
            legacy if isinstance(legacy, list) else [],
        )

    async def fetch_store_reviews(
        self,
        store_name: str,
        place_id: str | None = None,
        google_maps_url: str | None = None,
        search_prefix: str | None = None,
    ) -> list[PlaceReview]:
        url_place_id = extract_place_id(google_maps_url)
        resolved = place_id or url_place_id
        primary: list[PlaceReview] = []
        legacy: list[PlaceReview] = []

        if resolved:
            primary, legacy = await self._fetch_both(resolved)

        if not primary and not legacy and url_place_id and url_place_id != resolved:
            logger.bind(store=store_name, place_id=url_place_id).info("places_retry_url_place_id")
            legacy = await self._legacy.fetch_reviews(url_place_id)

        if not primary and not legacy:
            queries = [store_name]
            if search_prefix:
                queries.append(f"{search_prefix} {store_name}")
            for query in queries:
                found = await self._legacy.find_place_id(query)
                if not found:
                    continue
                logger.bind(store=store_name, query=query, place_id=found).info("places_text_search_hit")
                primary, legacy = await self._fetch_both(found)
                if primary or legacy:
                    break

        merged = merge_reviews(primary, legacy)
        logger.bind(
            store=store_name,
            primary=len(primary),
            legacy=len(legacy),
            merged=len(merged),
        ).info("store_reviews_merged")
        return merged
