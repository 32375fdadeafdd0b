# backend/tests/test_heatmap.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import weekday_calendar
from decembrrr.domain.collection_calendar import CollectionDayStatus
from decembrrr.domain.heatmap import (
    HEAT_CRITICAL_MAX,
    HEAT_PARTIAL_MAX,
    HeatBand,
    calendar_month,
    heat_band,
    monthly_heatmap,
    percent_paid,
)


@dataclass
class T:
    profile_id: int
    type: str
    amount: Decimal
    created_at: datetime


def _deposit(pid: int, d: date, hour: int = 9) -> T:
    return T(pid, "deposit", Decimal("10"), datetime(d.year, d.month, d.day, hour, 0))


def test_fifteen_of_twenty_paid_is_seventy_five():
    d = date(2024, 12, 2)
    txns = [_deposit(i, d) for i in range(1, 16)]
    txns.append(_deposit(1, d, hour=15))  # second deposit from the same member
    heat = monthly_heatmap(txns, 2024, 12, 20)
    assert heat == {d: 75}
    assert heat_band(heat[d]) is HeatBand.HEALTHY


def test_days_without_deposits_are_omitted():
    txns = [_deposit(1, date(2024, 12, 3)), _deposit(1, date(2025, 1, 3))]
    assert monthly_heatmap(txns, 2024, 12, 4) == {date(2024, 12, 3): 25}


def test_zero_active_members_gives_zero_not_an_error():
    txns = [_deposit(1, date(2024, 12, 3))]
    assert monthly_heatmap(txns, 2024, 12, 0) == {date(2024, 12, 3): 0}
    assert percent_paid(5, 0) == 0


def test_percent_is_bounded():
    assert percent_paid(3, 2) == 100
    for payers in range(0, 30):
        pct = percent_paid(payers, 7)
        assert 0 <= pct <= 100


def test_percent_rounds_half_up():
    # 1/8 = 12.5%
    assert percent_paid(1, 8) == 13


def test_heat_band_thresholds():
    assert (HEAT_CRITICAL_MAX, HEAT_PARTIAL_MAX) == (15, 65)
    assert heat_band(0) is HeatBand.CRITICAL
    assert heat_band(15) is HeatBand.CRITICAL
    assert heat_band(16) is HeatBand.PARTIAL
    assert heat_band(65) is HeatBand.PARTIAL
    assert heat_band(66) is HeatBand.HEALTHY
    assert heat_band(100) is HeatBand.HEALTHY


def test_calendar_month_grid():
    cal = weekday_calendar()
    today = date(2024, 12, 10)
    grid = calendar_month(
        2024,
        12,
        cal,
        {date(2024, 12, 4): "Holiday", "2024-12-20": "Foundation day"},
        {date(2024, 12, 2): 75, date(2024, 12, 3): 10},
        20,
        today=today,
    )

    # Dec 1 2024 is a Sunday
    assert grid.leading_blanks == 6
    assert len(grid.cells) == 31
    assert grid.can_go_prev is False
    assert grid.can_go_next is True

    by_day = {c.day: c for c in grid.cells}
    assert by_day[1].status is CollectionDayStatus.BEFORE_START
    assert by_day[2].band is HeatBand.HEALTHY and by_day[2].clickable
    assert by_day[3].band is HeatBand.CRITICAL
    assert by_day[5].percent == 0 and by_day[5].band is HeatBand.CRITICAL
    assert by_day[4].status is CollectionDayStatus.NO_CLASS_EXCEPTION
    assert by_day[4].reason == "Holiday" and by_day[4].clickable
    assert by_day[7].status is CollectionDayStatus.NON_COLLECTION_DAY and not by_day[7].clickable
    assert by_day[16].status is CollectionDayStatus.FUTURE_COLLECTION_DAY
    assert not by_day[16].clickable and by_day[16].band is None
    # a future exception can still be unmarked
    assert by_day[20].status is CollectionDayStatus.NO_CLASS_EXCEPTION and by_day[20].clickable


def test_calendar_month_cannot_go_past_current_month():
    cal = weekday_calendar()
    grid = calendar_month(2025, 3, cal, {}, {}, 5, today=date(2025, 3, 14))
    assert grid.can_go_prev is True
    assert grid.can_go_next is False


@pytest.mark.parametrize("month", [0, 13])
def test_bad_month(month):
    from decembrrr.errors import InvalidArgument

    with pytest.raises(InvalidArgument):
        monthly_heatmap([], 2024, month, 3)
