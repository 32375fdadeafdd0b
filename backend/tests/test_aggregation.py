# backend/tests/test_aggregation.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from decembrrr.errors import InvalidArgument
from decembrrr.domain.aggregation import (
    actual_amount_by_date,
    bucket_date,
    count_by_date,
    distinct_payers_by_date,
    sum_window,
    utc_window,
)


@dataclass
class T:
    profile_id: int
    type: str
    amount: Decimal
    created_at: datetime


DEC2 = date(2024, 12, 2)
DEC3 = date(2024, 12, 3)


def test_sums_deposits_per_date_and_skips_deductions():
    txns = [
        T(1, "deposit", Decimal("10"), datetime(2024, 12, 2, 8, 0)),
        T(2, "deposit", Decimal("20"), datetime(2024, 12, 2, 23, 59)),
        T(1, "deduction", Decimal("10"), datetime(2024, 12, 2, 18, 0)),
        T(3, "deposit", Decimal("5"), datetime(2024, 12, 3, 0, 1)),
        T(3, "deposit", Decimal("5"), datetime(2024, 12, 9, 0, 1)),
    ]
    out = actual_amount_by_date(txns, start=DEC2, end=date(2024, 12, 8))
    assert out == {DEC2: Decimal("30"), DEC3: Decimal("5")}
    assert date(2024, 12, 4) not in out


def test_class_timezone_moves_late_utc_deposits_to_next_day():
    txns = [
        T(1, "deposit", Decimal("10"), datetime(2024, 12, 2, 15, 59)),
        T(2, "deposit", Decimal("10"), datetime(2024, 12, 2, 16, 1)),
    ]
    utc = actual_amount_by_date(txns, start=DEC2, end=DEC3)
    manila = actual_amount_by_date(txns, start=DEC2, end=DEC3, tz_name="Asia/Manila")
    assert utc == {DEC2: Decimal("20")}
    assert manila == {DEC2: Decimal("10"), DEC3: Decimal("10")}


def test_naive_and_aware_timestamps_agree():
    naive = datetime(2024, 12, 2, 20, 0)
    aware = datetime(2024, 12, 2, 20, 0, tzinfo=timezone.utc)
    assert bucket_date(naive, "Asia/Manila") == bucket_date(aware, "Asia/Manila") == DEC3


def test_distinct_payers_counts_each_member_once():
    txns = [
        T(1, "deposit", Decimal("10"), datetime(2024, 12, 2, 8, 0)),
        T(1, "deposit", Decimal("10"), datetime(2024, 12, 2, 9, 0)),
        T(2, "deposit", Decimal("10"), datetime(2024, 12, 2, 9, 0)),
        T(3, "deduction", Decimal("10"), datetime(2024, 12, 2, 18, 0)),
    ]
    assert distinct_payers_by_date(txns, start=DEC2, end=DEC2) == {DEC2: 2}
    assert count_by_date(txns, start=DEC2, end=DEC2) == {DEC2: 3}


def test_dict_rows_are_accepted():
    rows = [{"profile_id": 1, "type": "DEPOSIT", "amount": 12.5, "created_at": datetime(2024, 12, 2, 8, 0)}]
    assert actual_amount_by_date(rows, start=DEC2, end=DEC2) == {DEC2: Decimal("12.5")}


def test_utc_window_for_manila():
    lo, hi = utc_window(DEC2, DEC2, "Asia/Manila")
    assert lo == datetime(2024, 12, 1, 16, 0)
    assert hi == datetime(2024, 12, 2, 16, 0)


def test_sum_window_and_bad_range():
    by_date = {DEC2: Decimal("10"), DEC3: Decimal("5"), date(2024, 12, 9): Decimal("7")}
    assert sum_window(by_date, DEC2, date(2024, 12, 8)) == Decimal("15")
    with pytest.raises(InvalidArgument):
        actual_amount_by_date([], start=DEC3, end=DEC2)
