# backend/decembrrr/domain/aggregation.py
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional

from .collection_calendar import require_range, zone

DEPOSIT = "deposit"
DEDUCTION = "deduction"


def row_field(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def bucket_date(ts: datetime, tz_name: str) -> date:
    """
    Calendar date a ledger timestamp belongs to in the class timezone.
    Naive timestamps are read as UTC (how the ledger stores them).
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(zone(tz_name)).date()


def utc_window(start: date, end: date, tz_name: str) -> tuple[datetime, datetime]:
    """[start 00:00, end+1 00:00) in the class timezone, expressed as naive UTC for store queries."""
    require_range(start, end)
    tz = zone(tz_name)
    lo = datetime.combine(start, time.min, tzinfo=tz).astimezone(timezone.utc)
    hi = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return lo.replace(tzinfo=None), hi.replace(tzinfo=None)


def _entries_in_window(
    txns: Iterable[Any],
    *,
    start: date,
    end: date,
    tz_name: str,
    txn_type: Optional[str],
):
    require_range(start, end)
    for t in txns or ():
        if txn_type and (str(row_field(t, "type") or "").lower() != txn_type):
            continue
        created = row_field(t, "created_at")
        if created is None:
            continue
        d = bucket_date(created, tz_name)
        if start <= d <= end:
            yield d, t


def actual_amount_by_date(
    txns: Iterable[Any],
    *,
    start: date,
    end: date,
    tz_name: str = "UTC",
    txn_type: str = DEPOSIT,
) -> dict[date, Decimal]:
    """
    Sum of `amount` per calendar date for one entry type.
    Dates without entries are absent; callers read missing keys as 0.
    """
    out: dict[date, Decimal] = defaultdict(Decimal)
    for d, t in _entries_in_window(txns, start=start, end=end, tz_name=tz_name, txn_type=txn_type):
        out[d] += Decimal(str(row_field(t, "amount") or 0))
    return dict(out)


def count_by_date(
    txns: Iterable[Any],
    *,
    start: date,
    end: date,
    tz_name: str = "UTC",
    txn_type: str = DEPOSIT,
) -> dict[date, int]:
    out: dict[date, int] = defaultdict(int)
    for d, _t in _entries_in_window(txns, start=start, end=end, tz_name=tz_name, txn_type=txn_type):
        out[d] += 1
    return dict(out)


def distinct_payers_by_date(
    txns: Iterable[Any],
    *,
    start: date,
    end: date,
    tz_name: str = "UTC",
) -> dict[date, int]:
    """Unique members with at least one deposit per date."""
    payers: dict[date, set] = defaultdict(set)
    for d, t in _entries_in_window(txns, start=start, end=end, tz_name=tz_name, txn_type=DEPOSIT):
        payers[d].add(row_field(t, "profile_id"))
    return {d: len(ids) for d, ids in payers.items()}


def sum_window(by_date: dict[date, Any], start: date, end: date) -> Decimal:
    require_range(start, end)
    total = Decimal("0")
    for d, v in by_date.items():
        if start <= d <= end:
            total += Decimal(str(v))
    return total
