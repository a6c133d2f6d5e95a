"""Dashboard aggregation over persisted reviews.

Time bucketing lives in exactly two pure functions, :func:`bucket_key` and
:func:`period_keys_in_range`; the time series and the store-by-period table
both go through them so their period keys always line up. All calendar math is
done on naive UTC timestamps.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Granularity, Review, Store
from app.schemas.dashboard import (
    DashboardFilters,
    DashboardOut,
    StoreByPeriodOut,
    StoreOption,
    StorePeriodRow,
    StoreRatingCounts,
    SummaryOut,
    TimeSeriesPoint,
)
from app.services.errors import PeriodRangeTooLargeError
from app.services.stores import list_stores

RATING_VALUES = (1, 2, 3, 4, 5)
_ONE_PLACE = Decimal("0.1")
ALL_STORES = "all"
# Roughly ten years of DAY buckets.
MAX_PERIOD_KEYS = 3700


def bucket_key(moment: datetime | date, granularity: Granularity | str) -> date:
    """Period key containing ``moment``.

    DAY is the calendar date, WEEK the Monday on or before it (a Sunday maps
    six days back), MONTH the first day of the month.
    """

    granularity = Granularity(granularity)
    day = moment.date() if isinstance(moment, datetime) else moment
    if granularity is Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity is Granularity.MONTH:
        return day.replace(day=1)
    return day


def _next_key(key: date, granularity: Granularity) -> date:
    if granularity is Granularity.WEEK:
        return key + timedelta(days=7)
    if granularity is Granularity.MONTH:
        return (key.replace(day=28) + timedelta(days=4)).replace(day=1)
    return key + timedelta(days=1)


def _period_count(first: date, last: date, granularity: Granularity) -> int:
    if granularity is Granularity.WEEK:
        return (last - first).days // 7 + 1
    if granularity is Granularity.MONTH:
        return (last.year - first.year) * 12 + last.month - first.month + 1
    return (last - first).days + 1


def period_keys_in_range(
    start: date,
    end: date,
    granularity: Granularity | str,
    max_periods: int = MAX_PERIOD_KEYS,
) -> list[date]:
    """Every period key from ``start``'s period through ``end``'s, inclusive.

    Raises :class:`PeriodRangeTooLargeError` when the range holds more than
    ``max_periods`` keys.
    """

    granularity = Granularity(granularity)
    if end < start:
        return []
    key = bucket_key(start, granularity)
    last = bucket_key(end, granularity)
    count = _period_count(key, last, granularity)
    if count > max_periods:
        raise PeriodRangeTooLargeError(
            f"{start.isoformat()}..{end.isoformat()} spans {count} {granularity.value} periods;"
            f" at most {max_periods} are allowed"
        )
    keys = [key]
    while key < last:
        key = _next_key(key, granularity)
        keys.append(key)
    return keys


def round_rating(value: float) -> float:
    """Round half up to one decimal (4.25 -> 4.3)."""

    return float(Decimal(str(value)).quantize(_ONE_PLACE, rounding=ROUND_HALF_UP))


def date_bounds(filters: DashboardFilters) -> tuple[datetime | None, datetime | None]:
    """Start of the first day and the last microsecond of the end day."""

    start = datetime.combine(filters.start_date, time.min) if filters.start_date else None
    end = datetime.combine(filters.end_date, time.max) if filters.end_date else None
    return start, end


def resolve_store_scope(stores: Sequence[Store], filters: DashboardFilters) -> tuple[list[Store], bool]:
    """Stores selected by ``store_ids`` and ``brand``.

    Returns the scoped stores and whether any restriction applied.
    """

    ids = {store_id for store_id in (filters.store_ids or []) if store_id}
    if ALL_STORES in ids:
        ids = set()
    restricted = bool(ids) or filters.brand is not None
    scoped = [
        store
        for store in stores
        if (not ids or store.id in ids)
        and (filters.brand is None or store.brand == filters.brand.value)
    ]
    return scoped, restricted


def apply_review_filters(query: Select, filters: DashboardFilters, store_ids: list[str] | None) -> Select:
    """Apply store/date/rating filters; ``store_ids=None`` means unrestricted."""

    if store_ids is not None:
        query = query.where(Review.store_id.in_(store_ids))
    start, end = date_bounds(filters)
    if start is not None:
        query = query.where(Review.created_at >= start)
    if end is not None:
        query = query.where(Review.created_at <= end)
    if filters.rating is not None:
        query = query.where(Review.rating == filters.rating)
    return query


def summarize(ratings: Sequence[int]) -> SummaryOut:
    if not ratings:
        return SummaryOut(total_reviews=0, average_rating=0)
    return SummaryOut(
        total_reviews=len(ratings),
        average_rating=round_rating(sum(ratings) / len(ratings)),
    )


def build_time_series(
    rows: Iterable[tuple[datetime, int]], granularity: Granularity | str
) -> list[TimeSeriesPoint]:
    """One point per bucket present in ``rows`` (created_at, rating), ascending."""

    totals: dict[date, list[int]] = defaultdict(lambda: [0, 0])
    for created_at, rating in rows:
        bucket = totals[bucket_key(created_at, granularity)]
        bucket[0] += 1
        bucket[1] += rating
    return [
        TimeSeriesPoint(
            date=key.isoformat(),
            review_count=count,
            average_rating=rating_sum / count,
        )
        for key, (count, rating_sum) in sorted(totals.items())
    ]


def build_store_comparison(
    stores: Sequence[Store], counts: dict[tuple[str, int], int]
) -> list[StoreRatingCounts]:
    """Rating histogram per store; stores without reviews get all zeros."""

    comparison = [
        StoreRatingCounts(
            store_id=store.id,
            store_name=store.name,
            rating_counts={rating: counts.get((store.id, rating), 0) for rating in RATING_VALUES},
        )
        for store in stores
    ]
    comparison.sort(key=lambda item: (-sum(item.rating_counts.values()), item.store_name, item.store_id))
    return comparison


def build_store_by_period(
    stores: Sequence[Store],
    rows: Iterable[tuple[str, datetime]],
    period_keys: Sequence[date],
    granularity: Granularity | str,
) -> StoreByPeriodOut:
    """Store x period count table over a fixed, gap-free list of period keys."""

    keys = [key.isoformat() for key in period_keys]
    known = set(keys)
    counts: dict[str, dict[str, int]] = {store.id: dict.fromkeys(keys, 0) for store in stores}
    for store_id, created_at in rows:
        key = bucket_key(created_at, granularity).isoformat()
        if store_id in counts and key in known:
            counts[store_id][key] += 1
    return StoreByPeriodOut(
        period_keys=keys,
        rows=[
            StorePeriodRow(
                store_id=store.id,
                store_name=store.name,
                counts=counts[store.id],
                total=sum(counts[store.id].values()),
            )
            for store in stores
        ],
    )


async def _rating_counts_by_store(
    session: AsyncSession, filters: DashboardFilters, store_ids: list[str] | None
) -> dict[tuple[str, int], int]:
    query = select(Review.store_id, Review.rating, func.count(Review.id).label("count"))
    query = apply_review_filters(query, filters, store_ids)
    query = query.group_by(Review.store_id, Review.rating)
    results = (await session.execute(query)).all()
    return {(r.store_id, r.rating): int(r.count) for r in results}


async def aggregate(
    session: AsyncSession, filters: DashboardFilters, max_periods: int = MAX_PERIOD_KEYS
) -> DashboardOut:
    """Summary, time series, store comparison and store-by-period table."""

    stores = await list_stores(session)
    scoped, restricted = resolve_store_scope(stores, filters)
    scoped_ids = [store.id for store in scoped] if restricted else None

    query = select(Review.store_id, Review.rating, Review.created_at)
    query = apply_review_filters(query, filters, scoped_ids).order_by(Review.created_at, Review.id)
    rows = (await session.execute(query)).all()

    counts = await _rating_counts_by_store(session, filters, scoped_ids)

    start = filters.start_date or (rows[0].created_at.date() if rows else None)
    end = filters.end_date or (rows[-1].created_at.date() if rows else None)
    period_keys = (
        period_keys_in_range(start, end, filters.granularity, max_periods) if start and end else []
    )

    return DashboardOut(
        summary=summarize([r.rating for r in rows]),
        time_series_data=build_time_series(((r.created_at, r.rating) for r in rows), filters.granularity),
        store_comparison=build_store_comparison(scoped, counts),
        store_by_period=build_store_by_period(
            scoped, ((r.store_id, r.created_at) for r in rows), period_keys, filters.granularity
        ),
        stores=[StoreOption(id=s.id, name=s.name, brand=s.brand) for s in stores],
    )
