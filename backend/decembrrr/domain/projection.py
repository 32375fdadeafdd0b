# backend/decembrrr/domain/projection.py
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Iterator, Optional

from ..errors import InvalidArgument
from .collection_calendar import (
    ClassCalendar,
    exception_keys,
    is_collection_day,
    iter_dates,
    require_range,
)

ZERO = Decimal("0")


def round_half_up(x: Any) -> int:
    """Round to the nearest integer with .5 going up (display rounding, not banker's)."""
    return int(Decimal(str(x)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def require_member_count(active_member_count: int) -> None:
    if active_member_count is None or int(active_member_count) < 0:
        raise InvalidArgument(f"active_member_count must be >= 0, got {active_member_count}")


def expected_amount(
    d: date,
    cal: ClassCalendar,
    active_member_count: int,
    exceptions: Iterable[Any] = (),
) -> Decimal:
    """daily_amount x active members on a genuine collection day, else 0."""
    require_member_count(active_member_count)
    if is_collection_day(d, cal, exceptions):
        return cal.daily_amount * int(active_member_count)
    return ZERO


def count_weekdays(start: date, end: date, weekdays: frozenset[int]) -> int:
    """Number of dates in [start, end] whose ISO weekday is in `weekdays`, without walking the range."""
    if end < start:
        return 0
    n = (end - start).days + 1
    full_weeks, rem = divmod(n, 7)
    count = full_weeks * len(weekdays)
    first = start.isoweekday()
    for i in range(rem):
        if ((first - 1 + i) % 7) + 1 in weekdays:
            count += 1
    return count


def count_collection_days(
    start: date,
    end: date,
    cal: ClassCalendar,
    exceptions: Iterable[Any] = (),
) -> int:
    """
    Collection days in [start, end]: collection weekdays on/after date_initiated,
    minus excepted dates that would otherwise have collected.
    """
    require_range(start, end)
    lo = max(start, cal.date_initiated)
    if end < lo:
        return 0

    total = count_weekdays(lo, end, cal.collection_days)
    for key in exception_keys(exceptions):
        d = date.fromisoformat(key)
        if lo <= d <= end and d.isoweekday() in cal.collection_days:
            total -= 1
    return total


def count_past_collection_days(
    start: date,
    end: date,
    cal: ClassCalendar,
    exceptions: Iterable[Any] = (),
    *,
    today: date,
) -> int:
    """Collection days in [start, min(end, today)]; future days are not counted."""
    require_range(start, end)
    hi = min(end, today)
    if hi < start:
        return 0
    return count_collection_days(start, hi, cal, exceptions)


def expected_amount_over_range(
    start: date,
    end: date,
    cal: ClassCalendar,
    active_member_count: int,
    exceptions: Iterable[Any] = (),
) -> Decimal:
    require_member_count(active_member_count)
    days = count_collection_days(start, end, cal, exceptions)
    return cal.daily_amount * int(active_member_count) * days


def iter_expected(
    start: date,
    end: date,
    cal: ClassCalendar,
    active_member_count: int,
    exceptions: Iterable[Any] = (),
    *,
    limit: Optional[int] = None,
) -> Iterator[tuple[date, Decimal]]:
    """
    Streaming per-day projection. Consumers can stop early; `limit` caps the
    number of days yielded.
    """
    require_member_count(active_member_count)
    keys = exception_keys(exceptions)
    days = iter_dates(start, end)

    def _gen() -> Iterator[tuple[date, Decimal]]:
        for i, d in enumerate(days):
            if limit is not None and i >= limit:
                return
            yield d, expected_amount(d, cal, active_member_count, keys)

    return _gen()
