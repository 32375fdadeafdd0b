# backend/decembrrr/domain/collection_calendar.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import InvalidArgument

ISO_WEEKDAYS = frozenset(range(1, 8))
DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CollectionDayStatus(str, Enum):
    BEFORE_START = "before_start"
    NON_COLLECTION_DAY = "non_collection_day"
    NO_CLASS_EXCEPTION = "no_class_exception"
    FUTURE_COLLECTION_DAY = "future_collection_day"
    PAST_COLLECTION_DAY = "past_collection_day"


COLLECTING_STATUSES = frozenset(
    {CollectionDayStatus.FUTURE_COLLECTION_DAY, CollectionDayStatus.PAST_COLLECTION_DAY}
)


@dataclass(frozen=True)
class ClassCalendar:
    """
    The slice of a class's configuration the engine needs.

    collection_days uses ISO weekdays (1=Monday ... 7=Sunday).
    """

    daily_amount: Decimal
    collection_days: frozenset[int]
    date_initiated: date
    collection_frequency: str = "daily"
    fund_goal: Optional[Decimal] = None
    timezone: str = "UTC"
    class_id: Optional[int] = None

    def __post_init__(self) -> None:
        days = frozenset(int(d) for d in self.collection_days)
        if not days:
            raise InvalidArgument("collection_days must not be empty")
        if not days <= ISO_WEEKDAYS:
            raise InvalidArgument(f"collection_days must be ISO weekdays 1..7, got {sorted(days)}")
        if Decimal(self.daily_amount) <= 0:
            raise InvalidArgument("daily_amount must be positive")
        if self.fund_goal is not None and Decimal(self.fund_goal) <= 0:
            raise InvalidArgument("fund_goal must be positive when set")
        object.__setattr__(self, "collection_days", days)
        object.__setattr__(self, "daily_amount", Decimal(self.daily_amount))

    @classmethod
    def from_row(cls, row: Any, *, default_timezone: str = "UTC") -> "ClassCalendar":
        goal = getattr(row, "fund_goal", None)
        return cls(
            daily_amount=Decimal(str(row.daily_amount)),
            collection_days=frozenset(row.collection_days or ()),
            date_initiated=row.date_initiated,
            collection_frequency=(getattr(row, "collection_frequency", None) or "daily"),
            fund_goal=Decimal(str(goal)) if goal is not None else None,
            timezone=(getattr(row, "timezone", None) or default_timezone),
            class_id=getattr(row, "id", None),
        )


def zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidArgument(f"unknown timezone {name!r}") from e


def today_in(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date at `now` (default: current instant) in the given timezone."""
    tz = zone(tz_name)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(tz).date()


def iso_weekday_from_platform(platform_day: int) -> int:
    """0=Sunday..6=Saturday -> ISO 1=Monday..7=Sunday."""
    if platform_day < 0 or platform_day > 6:
        raise InvalidArgument(f"platform weekday must be 0..6, got {platform_day}")
    return 7 if platform_day == 0 else platform_day


def date_key(d: date) -> str:
    return d.isoformat()


def exception_keys(dates: Iterable[Any]) -> frozenset[str]:
    """Normalize date objects, ISO strings or NoClassDate-like rows into YYYY-MM-DD keys."""
    if isinstance(dates, frozenset) and all(isinstance(x, str) and len(x) == 10 for x in dates):
        return dates
    out: set[str] = set()
    for d in dates or ():
        if isinstance(d, str):
            out.add(date.fromisoformat(d[:10]).isoformat())
        elif isinstance(d, datetime):
            out.add(d.date().isoformat())
        elif isinstance(d, date):
            out.add(d.isoformat())
        else:
            out.add(getattr(d, "date").isoformat())
    return frozenset(out)


def classify(
    d: date,
    cal: ClassCalendar,
    exceptions: Iterable[Any] = (),
    *,
    today: Optional[date] = None,
) -> CollectionDayStatus:
    """
    Precedence: before-start, non-collection weekday, no-class exception,
    future, past. An exception outranks the future/past split.
    """
    if d < cal.date_initiated:
        return CollectionDayStatus.BEFORE_START
    if d.isoweekday() not in cal.collection_days:
        return CollectionDayStatus.NON_COLLECTION_DAY

    if date_key(d) in exception_keys(exceptions):
        return CollectionDayStatus.NO_CLASS_EXCEPTION

    if today is None:
        today = today_in(cal.timezone)
    if d > today:
        return CollectionDayStatus.FUTURE_COLLECTION_DAY
    return CollectionDayStatus.PAST_COLLECTION_DAY


def is_collection_day(d: date, cal: ClassCalendar, exceptions: Iterable[Any] = ()) -> bool:
    # the future/past split does not matter here, so pin today to avoid a clock read
    return classify(d, cal, exceptions, today=date.max) in COLLECTING_STATUSES


# -----------------------------
# Date ranges
# -----------------------------
def require_range(start: date, end: date) -> None:
    if end < start:
        raise InvalidArgument(f"range end {end.isoformat()} is before start {start.isoformat()}")


def iter_dates(start: date, end: date) -> Iterator[date]:
    require_range(start, end)
    return _walk(start, end)


def _walk(start: date, end: date) -> Iterator[date]:
    d = start
    one = timedelta(days=1)
    while d <= end:
        yield d
        d += one


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if month < 1 or month > 12:
        raise InvalidArgument(f"month must be 1..12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iso_week_bounds(d: date) -> tuple[date, date]:
    monday = d - timedelta(days=d.isoweekday() - 1)
    return monday, monday + timedelta(days=6)


def next_month(year: int, month: int) -> tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBR[month - 1]} {year}"
