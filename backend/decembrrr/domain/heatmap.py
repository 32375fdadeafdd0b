# backend/decembrrr/domain/heatmap.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .aggregation import distinct_payers_by_date
from .collection_calendar import (
    ClassCalendar,
    CollectionDayStatus,
    classify,
    date_key,
    exception_keys,
    iter_dates,
    month_bounds,
)
from .projection import require_member_count, round_half_up

# Heatmap color bands: <=15 critical, 16..65 partial, >65 healthy.
# Independent of the report completion policy (reports.COMPLETION_*).
HEAT_CRITICAL_MAX = 15
HEAT_PARTIAL_MAX = 65


class HeatBand(str, Enum):
    CRITICAL = "critical"
    PARTIAL = "partial"
    HEALTHY = "healthy"


def heat_band(pct: int) -> HeatBand:
    if pct <= HEAT_CRITICAL_MAX:
        return HeatBand.CRITICAL
    if pct <= HEAT_PARTIAL_MAX:
        return HeatBand.PARTIAL
    return HeatBand.HEALTHY


def percent_paid(payers: int, active_member_count: int) -> int:
    """round(payers / active * 100), clamped to 0..100; 0 when nobody is active."""
    require_member_count(active_member_count)
    if active_member_count == 0 or payers <= 0:
        return 0
    pct = round_half_up(Decimal(payers) * 100 / Decimal(active_member_count))
    return max(0, min(100, pct))


def monthly_heatmap(
    txns: Iterable[Any],
    year: int,
    month: int,
    active_member_count: int,
    *,
    tz_name: str = "UTC",
) -> dict[date, int]:
    """Per-day percent of active members with a deposit. Days without deposits are omitted."""
    require_member_count(active_member_count)
    start, end = month_bounds(year, month)
    payers = distinct_payers_by_date(txns, start=start, end=end, tz_name=tz_name)
    return {d: percent_paid(n, active_member_count) for d, n in sorted(payers.items())}


@dataclass(frozen=True)
class CalendarCell:
    date: date
    day: int
    status: CollectionDayStatus
    percent: int
    band: Optional[HeatBand]
    clickable: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class CalendarMonth:
    year: int
    month: int
    leading_blanks: int
    cells: tuple[CalendarCell, ...]
    can_go_prev: bool
    can_go_next: bool
    active_members: int


def calendar_month(
    year: int,
    month: int,
    cal: ClassCalendar,
    no_class_reasons: Mapping[Any, str],
    heatmap: Mapping[date, int],
    active_member_count: int,
    *,
    today: date,
) -> CalendarMonth:
    """
    Monday-first month grid for the attendance calendar.

    Past collection days carry a heat band. Excepted days stay clickable even
    when in the future so a mark can be removed before the day arrives.
    """
    start, end = month_bounds(year, month)
    reasons = {(k if isinstance(k, str) else date_key(k)): v for k, v in (no_class_reasons or {}).items()}
    keys = exception_keys(frozenset(reasons))

    cells = []
    for d in iter_dates(start, end):
        status = classify(d, cal, keys, today=today)
        pct = int(heatmap.get(d, 0))
        band = heat_band(pct) if status is CollectionDayStatus.PAST_COLLECTION_DAY else None
        cells.append(
            CalendarCell(
                date=d,
                day=d.day,
                status=status,
                percent=pct,
                band=band,
                clickable=status
                in (CollectionDayStatus.PAST_COLLECTION_DAY, CollectionDayStatus.NO_CLASS_EXCEPTION),
                reason=reasons.get(date_key(d)),
            )
        )

    first_ym = (cal.date_initiated.year, cal.date_initiated.month)
    now_ym = (today.year, today.month)
    return CalendarMonth(
        year=year,
        month=month,
        leading_blanks=start.isoweekday() - 1,
        cells=tuple(cells),
        can_go_prev=(year, month) > first_ym,
        can_go_next=(year, month) < now_ym,
        active_members=int(active_member_count),
    )
