import httpx
import pytest

from app.services.google_places import (
    LegacyPlacesClient,
    PlacesV1Client,
    ReviewOrigin,
    extract_place_id,
)
from places_fakes import legacy_review, v1_review

TS = 1706781600  # 2024-02-01T10:00:00Z


def test_extract_place_id():
    assert extract_place_id("https://www.google.com/maps/place/?q=place_id:ChIJabc&hl=ja") == "ChIJabc"
    assert extract_place_id("https://maps.app.goo.gl/5syqmR83eYHR1Sy77") is None
    assert extract_place_id(None) is None


@pytest.mark.anyio
async def test_v1_reviews_are_normalized(places, places_http):
    places.v1["P1"] = [
        v1_review("佐藤", 5, TS, uri="https://maps.google.com/review/1"),
        v1_review("鈴木", 0, TS),
        {"rating": 3, "text": "plain text", "publishTime": "2024-02-01T10:00:00Z"},
    ]
    client = PlacesV1Client(places_http, "key", "ja")

    reviews = await client.fetch_reviews("P1")

    assert len(reviews) == 2
    first, second = reviews
    assert first.author_name == "佐藤"
    assert first.text == "丁寧な対応でした"
    assert first.publish_time == TS
    assert first.review_url == "https://maps.google.com/review/1"
    assert first.origin is ReviewOrigin.PLACES_V1
    assert second.author_name == ""
    assert second.text == "plain text"
    assert second.publish_time == TS

    request = places.requests[0]
    assert request.headers["X-Goog-Api-Key"] == "key"
    assert request.headers["X-Goog-FieldMask"] == "id,reviews"
    assert request.url.params["languageCode"] == "ja"


@pytest.mark.anyio
async def test_v1_unknown_place_returns_empty(places, places_http):
    client = PlacesV1Client(places_http, "key")
    assert await client.fetch_reviews("missing") == []
    assert await client.fetch_reviews_uri("missing") is None
    assert await client.fetch_reviews(None) == []
    assert len(places.requests) == 2


@pytest.mark.anyio
async def test_v1_reviews_uri(places, places_http):
    places.reviews_uri["P1"] = "https://maps.google.com/reviews/P1"
    client = PlacesV1Client(places_http, "key")
    assert await client.fetch_reviews_uri("P1") == "https://maps.google.com/reviews/P1"
    assert places.requests[0].headers["X-Goog-FieldMask"] == "googleMapsLinks"


@pytest.mark.anyio
async def test_v1_transport_error_propagates(places, places_http):
    places.broken.add("P1")
    client = PlacesV1Client(places_http, "key")
    with pytest.raises(httpx.ConnectError):
        await client.fetch_reviews("P1")


@pytest.mark.anyio
async def test_legacy_reviews_capped_and_sorted_newest(places, places_http):
    places.legacy["P1"] = [legacy_review(f"user{i}", 4, TS - i) for i in range(7)]
    client = LegacyPlacesClient(places_http, "key", "ja")

    reviews = await client.fetch_reviews("P1")

    assert [r.author_name for r in reviews] == [f"user{i}" for i in range(5)]
    assert all(r.review_url is None and r.origin is ReviewOrigin.PLACES_LEGACY for r in reviews)
    params = places.requests[0].url.params
    assert params["reviews_sort"] == "newest"
    assert params["key"] == "key"
    assert params["language"] == "ja"


@pytest.mark.anyio
async def test_legacy_non_ok_status_is_empty(places, places_http):
    places.legacy_status["P1"] = "REQUEST_DENIED"
    client = LegacyPlacesClient(places_http, "key")
    assert await client.fetch_reviews("P1") == []
    assert await client.fetch_reviews("unknown") == []


@pytest.mark.anyio
async def test_text_search(places, places_http):
    places.search["アメモバ 上野本店"] = "P9"
    client = LegacyPlacesClient(places_http, "key")
    assert await client.find_place_id("アメモバ 上野本店") == "P9"
    assert await client.find_place_id("nowhere") is None


@pytest.mark.anyio
async def test_non_json_body_is_treated_as_no_data(places, places_http):
    places.raw_bodies["P1"] = "<html>quota page</html>"
    v1 = PlacesV1Client(places_http, "key")
    legacy = LegacyPlacesClient(places_http, "key")

    assert await v1.fetch_reviews("P1") == []
    assert await v1.fetch_reviews_uri("P1") is None
    assert await legacy.fetch_reviews("P1") == []


@pytest.mark.anyio
async def test_json_body_that_is_not_an_object(places, places_http):
    places.raw_bodies["P1"] = '["unexpected"]'
    assert await PlacesV1Client(places_http, "key").fetch_reviews("P1") == []
    assert await LegacyPlacesClient(places_http, "key").fetch_reviews("P1") == []


@pytest.mark.anyio
async def test_malformed_v1_rows_are_skipped(places, places_http):
    places.v1["P1"] = [
        "not a review",
        {"rating": 5, "authorAttribution": "anon", "googleMapsUri": "https://deep/anon", "publishTime": "2024-02-01T10:00:00Z"},
        {"rating": 4, "text": {"text": 42}, "googleMapsUri": ["bad"]},
        v1_review("佐藤", 3, TS, uri="https://deep/sato"),
    ]
    client = PlacesV1Client(places_http, "key")

    reviews = await client.fetch_reviews("P1")

    assert [(r.author_name, r.rating, r.review_url) for r in reviews] == [
        ("", 5, "https://deep/anon"),
        ("", 4, None),
        ("佐藤", 3, "https://deep/sato"),
    ]
    assert reviews[1].text == ""


@pytest.mark.anyio
async def test_malformed_legacy_rows_are_skipped(places, places_http):
    places.legacy["P1"] = [None, {"rating": 2, "author_name": {"x": 1}, "time": "soon"}, legacy_review("山田", 4, TS)]

    reviews = await LegacyPlacesClient(places_http, "key").fetch_reviews("P1")

    assert [(r.author_name, r.rating, r.publish_time) for r in reviews] == [("", 2, 0), ("山田", 4, TS)]
