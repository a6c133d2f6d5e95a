from datetime import datetime

import pytest

from app.models import Brand, Store
from app.services.google_places import PlacesV1Client
from app.services.review_url import ReviewUrlResolver, resolve_review_url
from places_fakes import v1_review

MARCH_1 = 1709251200  # 2024-03-01T00:00:00Z
DAY = 86_400
MAP_URL = "https://www.google.com/maps/place/?q=place_id:P1"


@pytest.fixture
async def store(session):
    store = Store(name="アメモバ 上野本店", brand=Brand.AMEMOBA.value, place_id="P1", google_maps_url=MAP_URL)
    session.add(store)
    await session.commit()
    return store


@pytest.fixture
def resolver(places_http):
    return ReviewUrlResolver(PlacesV1Client(places_http, "key"), max_drift_days=30)


@pytest.mark.anyio
async def test_picks_smallest_time_difference(places, resolver, store):
    places.v1["P1"] = [
        v1_review("田中太郎", 5, MARCH_1 + 14 * DAY, uri="https://deep/taro"),
        v1_review("田中", 4, MARCH_1, uri="https://deep/tanaka"),
    ]

    url = await resolver.resolve(store, "田中", datetime(2024, 3, 1))

    assert url == "https://deep/tanaka"


@pytest.mark.anyio
async def test_drift_over_limit_falls_back_to_reviews_tab(places, resolver, store):
    places.v1["P1"] = [v1_review("田中", 4, MARCH_1 + 31 * DAY, uri="https://deep/late")]
    places.reviews_uri["P1"] = "https://maps.google.com/reviews/P1"

    url = await resolver.resolve(store, "田中", datetime(2024, 3, 1))

    assert url == "https://maps.google.com/reviews/P1"


@pytest.mark.anyio
async def test_no_reviews_tab_falls_back_to_map_url(places, resolver, store):
    places.v1["P1"] = [v1_review("鈴木", 4, MARCH_1, uri="https://deep/suzuki")]

    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == MAP_URL


@pytest.mark.anyio
async def test_without_target_time_first_matching_candidate_wins(places, resolver, store):
    places.v1["P1"] = [
        v1_review("佐藤", 5, MARCH_1, uri="https://deep/first"),
        v1_review("佐藤", 5, MARCH_1 + 400 * DAY, uri="https://deep/second"),
    ]

    assert await resolver.resolve(store) == "https://deep/first"


@pytest.mark.anyio
async def test_network_failure_degrades_to_map_url(places, resolver, store):
    places.broken.add("P1")

    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == MAP_URL
    assert await resolver.resolve_place_reviews_url(store) == MAP_URL


@pytest.mark.anyio
async def test_without_api_key_uses_map_url(places, store):
    resolver = ReviewUrlResolver(None)

    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == MAP_URL
    assert places.requests == []


@pytest.mark.anyio
async def test_unknown_store_is_none(session, resolver):
    assert await resolve_review_url(session, "nope", "田中", None, resolver) is None


@pytest.mark.anyio
async def test_resolve_by_store_id(session, places, resolver, store):
    places.v1["P1"] = [v1_review("田中", 4, MARCH_1, uri="https://deep/tanaka")]

    url = await resolve_review_url(session, store.id, "田中", datetime(2024, 3, 1, 0, 0, 30), resolver)

    assert url == "https://deep/tanaka"


@pytest.mark.anyio
async def test_non_json_body_degrades_to_map_url(places, resolver, store):
    places.raw_bodies["P1"] = "<html>quota exceeded</html>"

    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == MAP_URL


@pytest.mark.anyio
async def test_malformed_review_payload_does_not_raise(places, resolver, store):
    places.v1["P1"] = [{"rating": 5, "authorAttribution": "anon", "googleMapsUri": "u"}]

    # The row has no usable author, so a named lookup cannot claim it.
    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == MAP_URL
    assert await resolver.resolve(store) == "u"


class _ReviewsRaise(PlacesV1Client):
    async def fetch_reviews(self, place_id):
        raise ValueError("unexpected payload")


@pytest.mark.anyio
async def test_review_lookup_error_still_tries_reviews_tab(places, places_http, store):
    places.reviews_uri["P1"] = "https://maps.google.com/reviews/P1"
    resolver = ReviewUrlResolver(_ReviewsRaise(places_http, "key"))

    assert await resolver.resolve(store, "田中", datetime(2024, 3, 1)) == "https://maps.google.com/reviews/P1"
