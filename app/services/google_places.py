"""Google Places adapters.

Two generations of the upstream API describe the same place differently:

* Places API (New) v1 returns up to 5 reviews, each with a ``googleMapsUri``
  deep link; review text may be nested under ``text.text``.
* The legacy Place Details API returns up to 5 reviews sorted newest first,
  without deep links, and reports failures through a ``status`` field.

Both are normalized into :class:`PlaceReview`. Neither adapter raises when a
place has no reviews or when upstream answers with a body that is not a JSON
object; malformed review rows are skipped. Transport errors
(``httpx.HTTPError``) propagate so the caller can record a per-store failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

PLACES_V1_BASE = "https://places.googleapis.com/v1/places"
PLACES_LEGACY_BASE = "https://maps.googleapis.com/maps/api/place"
LEGACY_DETAILS_FIELDS = "name,rating,reviews,user_ratings_total"
MAX_REVIEWS_PER_PLACE = 5

_PLACE_ID_PATTERN = re.compile(r"place_id:([^&]+)")
_FRACTIONAL_SECONDS = re.compile(r"(T\d{2}:\d{2}:\d{2})\.\d+")


class ReviewOrigin(str, Enum):
    PLACES_V1 = "places_v1"
    PLACES_LEGACY = "places_legacy"


@dataclass(slots=True)
class PlaceReview:
    """A review as reported by one of the upstream adapters."""

    author_name: str
    rating: int
    text: str
    publish_time: int  # Unix seconds
    origin: ReviewOrigin
    relative_time_description: str = ""
    review_url: str | None = None

    @property
    def dedup_key(self) -> str:
        return f"{self.author_name}|{self.publish_time}"

    def to_payload(self) -> dict[str, Any]:
        """Audit blob stored alongside the persisted review."""

        return {
            "author_name": self.author_name,
            "rating": self.rating,
            "text": self.text,
            "time": self.publish_time,
            "relative_time_description": self.relative_time_description,
            "review_url": self.review_url,
            "origin": self.origin.value,
        }


def extract_place_id(google_maps_url: str | None) -> str | None:
    """Return the id from a ``...?q=place_id:<id>`` style map URL."""

    if not google_maps_url:
        return None
    match = _PLACE_ID_PATTERN.search(google_maps_url)
    return match.group(1) if match else None


def build_http_client(timeout_sec: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))


def _parse_rating(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not float(value).is_integer() or not 1 <= value <= 5:
        return None
    return int(value)


def _parse_publish_time(value: Any) -> int:
    """RFC 3339 timestamp -> Unix seconds; sub-second precision is dropped."""

    if not isinstance(value, str) or not value:
        return 0
    trimmed = _FRACTIONAL_SECONDS.sub(r"\1", value.strip()).replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(trimmed)
    except ValueError:
        logger.bind(publish_time=value).debug("places_v1_bad_publish_time")
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _decode_body(response: httpx.Response, event: str, **fields: Any) -> dict[str, Any] | None:
    """JSON object body of a successful response; anything else is logged and dropped."""

    try:
        data = response.json()
    except ValueError:
        logger.bind(status=response.status_code, **fields).warning(event)
        return None
    if not isinstance(data, dict):
        logger.bind(status=response.status_code, body_type=type(data).__name__, **fields).warning(event)
        return None
    return data


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _review_rows(value: Any) -> list[dict[str, Any]]:
    """Up to five review objects; non-object rows are skipped."""

    if not isinstance(value, list):
        return []
    return [row for row in value if isinstance(row, dict)][:MAX_REVIEWS_PER_PLACE]


def _normalize_v1_review(raw: dict[str, Any]) -> PlaceReview | None:
    rating = _parse_rating(raw.get("rating"))
    if rating is None:
        logger.bind(rating=raw.get("rating")).debug("places_v1_review_skipped")
        return None

    text = raw.get("text")
    if isinstance(text, dict):
        text = text.get("text")
    text = _as_str(text)

    author = _as_str(_as_dict(raw.get("authorAttribution")).get("displayName"))
    return PlaceReview(
        author_name=author,
        rating=rating,
        text=text,
        publish_time=_parse_publish_time(raw.get("publishTime")),
        origin=ReviewOrigin.PLACES_V1,
        relative_time_description=_as_str(raw.get("relativePublishTimeDescription")),
        review_url=_as_str(raw.get("googleMapsUri")) or None,
    )


def _normalize_legacy_review(raw: dict[str, Any]) -> PlaceReview | None:
    rating = _parse_rating(raw.get("rating"))
    if rating is None:
        logger.bind(rating=raw.get("rating")).debug("places_legacy_review_skipped")
        return None
    try:
        publish_time = int(raw.get("time") or 0)
    except (TypeError, ValueError):
        publish_time = 0
    return PlaceReview(
        author_name=_as_str(raw.get("author_name")),
        rating=rating,
        text=_as_str(raw.get("text")),
        publish_time=publish_time,
        origin=ReviewOrigin.PLACES_LEGACY,
        relative_time_description=_as_str(raw.get("relative_time_description")),
    )


class PlacesV1Client:
    """Adapter over Places API (New) v1."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, language: str = "ja"):
        self._http = http
        self._api_key = api_key
        self._language = language

    async def _get_place(self, place_id: str, field_mask: str) -> dict[str, Any] | None:
        response = await self._http.get(
            f"{PLACES_V1_BASE}/{quote(place_id, safe='')}",
            params={"languageCode": self._language},
            headers={"X-Goog-Api-Key": self._api_key, "X-Goog-FieldMask": field_mask},
        )
        if not response.is_success:
            logger.bind(
                place_id=place_id,
                status=response.status_code,
                field_mask=field_mask,
            ).warning("places_v1_request_failed")
            return None
        return _decode_body(response, "places_v1_bad_body", place_id=place_id, field_mask=field_mask)

    async def fetch_reviews(self, place_id: str | None) -> list[PlaceReview]:
        """Reviews with deep links; ``[]`` when the place is unknown or has none."""

        if not place_id:
            return []
        data = await self._get_place(place_id, "id,reviews")
        if not data:
            return []
        reviews = []
        for raw in _review_rows(data.get("reviews")):
            review = _normalize_v1_review(raw)
            if review is not None:
                reviews.append(review)
        logger.bind(place_id=place_id, count=len(reviews)).debug("places_v1_reviews")
        return reviews

    async def fetch_reviews_uri(self, place_id: str | None) -> str | None:
        """URL of the place's reviews tab (``googleMapsLinks.reviewsUri``)."""

        if not place_id:
            return None
        data = await self._get_place(place_id, "googleMapsLinks")
        if not data:
            return None
        return _as_str(_as_dict(data.get("googleMapsLinks")).get("reviewsUri")) or None


class LegacyPlacesClient:
    """Adapter over the legacy Place Details / Text Search APIs."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, language: str = "ja"):
        self._http = http
        self._api_key = api_key
        self._language = language

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> dict[str, Any] | None:
        response = await self._http.get(
            f"{PLACES_LEGACY_BASE}/{endpoint}/json",
            params={**params, "key": self._api_key, "language": self._language},
        )
        if not response.is_success:
            logger.bind(endpoint=endpoint, status=response.status_code).warning(
                "places_legacy_request_failed"
            )
            return None
        return _decode_body(response, "places_legacy_bad_body", endpoint=endpoint)

    async def fetch_reviews(self, place_id: str | None) -> list[PlaceReview]:
        """Newest-first reviews; any non-OK status yields ``[]`` and a warning."""

        if not place_id:
            return []
        data = await self._get_json(
            "details",
            {"place_id": place_id, "fields": LEGACY_DETAILS_FIELDS, "reviews_sort": "newest"},
        )
        if data is None:
            return []
        status = data.get("status")
        if status != "OK":
            logger.bind(
                place_id=place_id,
                status=status,
                error_message=data.get("error_message"),
            ).warning("places_legacy_status")
            return []

        reviews = []
        for raw in _review_rows(_as_dict(data.get("result")).get("reviews")):
            review = _normalize_legacy_review(raw)
            if review is not None:
                reviews.append(review)
        logger.bind(place_id=place_id, count=len(reviews)).debug("places_legacy_reviews")
        return reviews

    async def find_place_id(self, query: str) -> str | None:
        """First text search candidate for ``query``, if any."""

        data = await self._get_json("textsearch", {"query": query})
        if data is None:
            return None
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            logger.bind(
                query=query,
                status=status,
                error_message=data.get("error_message"),
            ).warning("places_text_search_status")
            return None
        for candidate in data.get("results") or []:
            place_id = _as_str(_as_dict(candidate).get("place_id"))
            if place_id:
                return place_id
        return None
