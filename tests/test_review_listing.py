from datetime import datetime

import pytest

from app.models import Brand, Review, Store
from app.schemas.dashboard import DashboardFilters
from app.services.review_listing import ReviewSort, list_reviews


@pytest.fixture
async def seeded(session):
    ueno = Store(name="上野", brand=Brand.AMEMOBA.value)
    akiba = Store(name="秋葉原", brand=Brand.SAKUMOBA.value)
    session.add_all([ueno, akiba])
    await session.flush()
    for day, (store, rating) in enumerate(
        [(ueno, 5), (ueno, 1), (akiba, 3), (ueno, 4), (akiba, 2)], start=1
    ):
        session.add(
            Review(
                store_id=store.id,
                source_review_id=f"{store.id}_{day}_u{day}",
                rating=rating,
                author_name=f"u{day}",
                created_at=datetime(2024, 4, day, 12, 0),
            )
        )
    await session.commit()
    return ueno, akiba


@pytest.mark.anyio
async def test_newest_first_with_pagination(session, seeded):
    page = await list_reviews(session, DashboardFilters(), page=1, limit=2)

    assert [r.author_name for r in page.reviews] == ["u5", "u4"]
    assert page.reviews[0].store_name == "秋葉原"
    assert page.pagination.total_count == 5
    assert page.pagination.total_pages == 3

    last = await list_reviews(session, DashboardFilters(), page=3, limit=2)
    assert [r.author_name for r in last.reviews] == ["u1"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "sort_by, expected",
    [
        (ReviewSort.OLDEST, ["u1", "u2", "u3", "u4", "u5"]),
        (ReviewSort.RATING_HIGH, ["u1", "u4", "u3", "u5", "u2"]),
        (ReviewSort.RATING_LOW, ["u2", "u5", "u3", "u4", "u1"]),
    ],
)
async def test_sort_orders(session, seeded, sort_by, expected):
    result = await list_reviews(session, DashboardFilters(), sort_by=sort_by)
    assert [r.author_name for r in result.reviews] == expected


@pytest.mark.anyio
async def test_filters_apply_to_listing(session, seeded):
    ueno, _ = seeded

    result = await list_reviews(session, DashboardFilters(store_ids=[ueno.id], rating=4))

    assert [r.author_name for r in result.reviews] == ["u4"]
    assert result.pagination.total_count == 1


@pytest.mark.anyio
async def test_empty_listing_has_zero_pages(session):
    result = await list_reviews(session, DashboardFilters())
    assert result.reviews == []
    assert result.pagination.total_pages == 0


@pytest.mark.anyio
async def test_rejects_non_positive_page(session):
    with pytest.raises(ValueError):
        await list_reviews(session, DashboardFilters(), page=0)
