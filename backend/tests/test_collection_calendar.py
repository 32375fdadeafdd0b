# backend/tests/test_collection_calendar.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import weekday_calendar
from decembrrr.errors import InvalidArgument
from decembrrr.domain.collection_calendar import (
    ClassCalendar,
    CollectionDayStatus,
    classify,
    exception_keys,
    is_collection_day,
    iso_weekday_from_platform,
    iter_dates,
    month_bounds,
    today_in,
)

TODAY = date(2024, 12, 10)


def test_before_start_wins_even_on_an_excepted_collection_monday():
    cal = weekday_calendar()
    # 2024-11-25 is a Monday and is listed as an exception
    assert date(2024, 11, 25).isoweekday() == 1
    status = classify(date(2024, 11, 25), cal, {"2024-11-25"}, today=TODAY)
    assert status is CollectionDayStatus.BEFORE_START


def test_every_date_gets_exactly_one_status_and_before_start_dominates():
    cal = weekday_calendar()
    start = date(2024, 11, 1)
    all_days = [start + timedelta(days=i) for i in range(90)]
    exceptions = [d.isoformat() for d in all_days[::3]]

    for d in all_days:
        status = classify(d, cal, exceptions, today=TODAY)
        assert isinstance(status, CollectionDayStatus)
        if d < cal.date_initiated:
            assert status is CollectionDayStatus.BEFORE_START


def test_weekend_is_non_collection_even_when_excepted():
    cal = weekday_calendar()
    assert classify(date(2024, 12, 7), cal, ["2024-12-07"], today=TODAY) is CollectionDayStatus.NON_COLLECTION_DAY


def test_exception_outranks_future():
    cal = weekday_calendar()
    d = date(2024, 12, 20)
    assert classify(d, cal, [], today=TODAY) is CollectionDayStatus.FUTURE_COLLECTION_DAY
    assert classify(d, cal, [d], today=TODAY) is CollectionDayStatus.NO_CLASS_EXCEPTION


def test_today_counts_as_past():
    cal = weekday_calendar()
    assert classify(TODAY, cal, [], today=TODAY) is CollectionDayStatus.PAST_COLLECTION_DAY
    assert classify(TODAY + timedelta(days=1), cal, [], today=TODAY) is CollectionDayStatus.FUTURE_COLLECTION_DAY


def test_is_collection_day_ignores_the_clock():
    cal = weekday_calendar()
    assert is_collection_day(date(2030, 1, 7), cal) is True
    assert is_collection_day(date(2024, 12, 4), cal, ["2024-12-04"]) is False


def test_platform_weekday_conversion():
    assert iso_weekday_from_platform(0) == 7
    assert [iso_weekday_from_platform(i) for i in range(1, 7)] == [1, 2, 3, 4, 5, 6]
    with pytest.raises(InvalidArgument):
        iso_weekday_from_platform(7)


def test_exception_keys_accepts_mixed_shapes():
    class Row:
        date = date(2024, 12, 5)

    keys = exception_keys(["2024-12-04", date(2024, 12, 6), datetime(2024, 12, 9, 13, 0), Row()])
    assert keys == frozenset({"2024-12-04", "2024-12-05", "2024-12-06", "2024-12-09"})


def test_class_calendar_rejects_bad_config():
    with pytest.raises(InvalidArgument):
        weekday_calendar(collection_days=frozenset())
    with pytest.raises(InvalidArgument):
        weekday_calendar(collection_days=frozenset({0, 1}))
    with pytest.raises(InvalidArgument):
        weekday_calendar(daily_amount=Decimal("0"))
    with pytest.raises(InvalidArgument):
        weekday_calendar(fund_goal=Decimal("-5"))


def test_class_calendar_from_row_uses_default_timezone():
    class Row:
        id = 7
        daily_amount = Decimal("10.00")
        collection_days = [1, 3, 5]
        date_initiated = date(2024, 12, 2)
        collection_frequency = None
        fund_goal = None
        timezone = None

    cal = ClassCalendar.from_row(Row(), default_timezone="Asia/Manila")
    assert cal.timezone == "Asia/Manila"
    assert cal.collection_days == frozenset({1, 3, 5})
    assert cal.collection_frequency == "daily"
    assert cal.class_id == 7


def test_iter_dates_validates_before_iteration():
    with pytest.raises(InvalidArgument):
        iter_dates(date(2024, 12, 5), date(2024, 12, 1))
    assert list(iter_dates(date(2024, 12, 30), date(2025, 1, 1))) == [
        date(2024, 12, 30),
        date(2024, 12, 31),
        date(2025, 1, 1),
    ]


def test_month_bounds_and_leap_year():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    with pytest.raises(InvalidArgument):
        month_bounds(2024, 13)


def test_today_in_timezone():
    now = datetime(2024, 12, 2, 17, 0, tzinfo=timezone.utc)
    assert today_in("UTC", now) == date(2024, 12, 2)
    assert today_in("Asia/Manila", now) == date(2024, 12, 3)
    with pytest.raises(InvalidArgument):
        today_in("Not/AZone", now)
