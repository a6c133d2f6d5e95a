from datetime import date, datetime

import pytest

from app.models import Granularity
from app.services.aggregation import bucket_key, period_keys_in_range, round_rating
from app.services.errors import PeriodRangeTooLargeError


def test_week_bucket_starts_on_monday():
    # 2024-01-07 is a Sunday, 2024-01-08 a Monday
    assert bucket_key(datetime(2024, 1, 7, 23, 59), Granularity.WEEK) == date(2024, 1, 1)
    assert bucket_key(datetime(2024, 1, 8, 0, 0), Granularity.WEEK) == date(2024, 1, 8)
    assert bucket_key(date(2024, 1, 10), "WEEK") == date(2024, 1, 8)


def test_month_and_day_buckets():
    assert bucket_key(datetime(2024, 2, 29, 12), Granularity.MONTH) == date(2024, 2, 1)
    assert bucket_key(datetime(2024, 2, 29, 12), Granularity.DAY) == date(2024, 2, 29)


def test_day_period_keys_inclusive():
    keys = period_keys_in_range(date(2024, 1, 1), date(2024, 1, 3), Granularity.DAY)
    assert [k.isoformat() for k in keys] == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_week_period_keys_align_to_mondays():
    keys = period_keys_in_range(date(2024, 1, 3), date(2024, 1, 21), Granularity.WEEK)
    assert keys == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]


def test_month_period_keys_cross_year():
    keys = period_keys_in_range(date(2023, 11, 15), date(2024, 2, 1), Granularity.MONTH)
    assert keys == [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]


def test_reversed_range_is_empty():
    assert period_keys_in_range(date(2024, 1, 3), date(2024, 1, 1), Granularity.DAY) == []


@pytest.mark.parametrize(
    "value, expected",
    [(4.25, 4.3), (4.35, 4.4), (4.5, 4.5), (3.04, 3.0), (13 / 3, 4.3)],
)
def test_round_rating_half_up(value, expected):
    assert round_rating(value) == expected


def test_range_over_period_limit_is_rejected():
    with pytest.raises(PeriodRangeTooLargeError):
        period_keys_in_range(date(1, 1, 1), date(9999, 12, 31), Granularity.DAY)
    with pytest.raises(PeriodRangeTooLargeError):
        period_keys_in_range(date(2024, 1, 1), date(2024, 1, 4), Granularity.DAY, max_periods=3)
    assert len(period_keys_in_range(date(2024, 1, 1), date(2024, 12, 31), Granularity.MONTH, max_periods=12)) == 12


def test_last_representable_day_does_not_overflow():
    assert period_keys_in_range(date(9999, 12, 31), date(9999, 12, 31), Granularity.DAY) == [date(9999, 12, 31)]
    assert period_keys_in_range(date(9999, 11, 15), date(9999, 12, 31), Granularity.MONTH) == [
        date(9999, 11, 1),
        date(9999, 12, 1),
    ]
