# backend/decembrrr/domain/reports.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from ..errors import InvalidArgument
from .aggregation import sum_window
from .collection_calendar import (
    DAY_LABELS,
    ClassCalendar,
    exception_keys,
    iso_week_bounds,
    month_bounds,
    month_label,
    next_month,
    today_in,
)
from .projection import (
    ZERO,
    count_past_collection_days,
    expected_amount,
    expected_amount_over_range,
    require_member_count,
    round_half_up,
)


class ViewMode(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    OVERALL = "overall"


# Completion-rate policy for report summaries.
# Not the heatmap bands (see heatmap.HEAT_*): different cut points, different contract.
COMPLETION_ALERT_BELOW = 50
COMPLETION_HEALTHY_FROM = 80


class CompletionBand(str, Enum):
    ALERT = "alert"
    WARNING = "warning"
    HEALTHY = "healthy"


def completion_band(pct: int) -> CompletionBand:
    if pct < COMPLETION_ALERT_BELOW:
        return CompletionBand.ALERT
    if pct < COMPLETION_HEALTHY_FROM:
        return CompletionBand.WARNING
    return CompletionBand.HEALTHY


def completion_pct(actual: Decimal, expected: Decimal) -> int:
    if expected <= 0:
        return 0
    return round_half_up(Decimal(actual) / Decimal(expected) * 100)


@dataclass(frozen=True)
class ReportBucket:
    label: str
    start: date
    end: date
    actual: Decimal
    expected: Decimal


@dataclass(frozen=True)
class ComplianceReport:
    view_mode: ViewMode
    reference_date: date
    window_start: date
    window_end: date
    buckets: tuple[ReportBucket, ...]
    summary_actual: Decimal
    summary_expected: Decimal
    comparison_baseline: Decimal
    comparison_label: str
    max_value: Decimal
    completion_pct: int
    completion_band: CompletionBand


def report_window(view_mode: ViewMode, cal: ClassCalendar, reference_date: date) -> tuple[date, date]:
    """
    Dates whose actuals the report reads (the store query range).
    Weekly reaches back one extra week for the comparison baseline.
    """
    mode = ViewMode(view_mode)
    if mode is ViewMode.WEEKLY:
        monday, sunday = iso_week_bounds(reference_date)
        return monday - timedelta(days=7), sunday
    if mode is ViewMode.MONTHLY:
        return month_bounds(reference_date.year, reference_date.month)
    start = min(cal.date_initiated, reference_date)
    return start, reference_date


def _bucket(
    label: str,
    start: date,
    end: date,
    *,
    cal: ClassCalendar,
    keys: frozenset[str],
    actual_by_date: dict[date, Any],
    active_member_count: int,
) -> ReportBucket:
    return ReportBucket(
        label=label,
        start=start,
        end=end,
        actual=sum_window(actual_by_date, start, end),
        expected=expected_amount_over_range(start, end, cal, active_member_count, keys),
    )


def _weekly_buckets(cal, keys, actual_by_date, reference_date, active_member_count) -> list[ReportBucket]:
    monday, _sunday = iso_week_bounds(reference_date)
    out = []
    for i, label in enumerate(DAY_LABELS):
        d = monday + timedelta(days=i)
        out.append(
            ReportBucket(
                label=label,
                start=d,
                end=d,
                actual=Decimal(str(actual_by_date.get(d, ZERO))),
                expected=expected_amount(d, cal, active_member_count, keys),
            )
        )
    return out


def _monthly_buckets(cal, keys, actual_by_date, reference_date, active_member_count) -> list[ReportBucket]:
    first, last = month_bounds(reference_date.year, reference_date.month)
    out = []
    start = first
    n = 1
    while start <= last:
        end = min(start + timedelta(days=6), last)
        out.append(
            _bucket(
                f"W{n}",
                start,
                end,
                cal=cal,
                keys=keys,
                actual_by_date=actual_by_date,
                active_member_count=active_member_count,
            )
        )
        start = end + timedelta(days=1)
        n += 1
    return out


def _overall_buckets(cal, keys, actual_by_date, reference_date, active_member_count) -> list[ReportBucket]:
    out: list[ReportBucket] = []
    if reference_date < cal.date_initiated:
        return out

    y, m = cal.date_initiated.year, cal.date_initiated.month
    while (y, m) <= (reference_date.year, reference_date.month):
        ms, me = month_bounds(y, m)
        start = max(ms, cal.date_initiated)
        end = min(me, reference_date)
        out.append(
            _bucket(
                month_label(y, m),
                start,
                end,
                cal=cal,
                keys=keys,
                actual_by_date=actual_by_date,
                active_member_count=active_member_count,
            )
        )
        y, m = next_month(y, m)
    return out


def build_report(
    view_mode: ViewMode | str,
    cal: ClassCalendar,
    no_class_dates: Iterable[Any],
    actual_by_date: dict[date, Any],
    reference_date: date,
    active_member_count: int,
    *,
    today: Optional[date] = None,
) -> ComplianceReport:
    """
    Compose classifier + projector + actuals into one reporting window.

    Buckets are always chronological. Summary totals are the exact sums of
    the bucket values, so positional bucket reads and totals never disagree.
    """
    try:
        mode = ViewMode(view_mode)
    except ValueError as e:
        raise InvalidArgument(f"unknown view mode {view_mode!r}") from e
    require_member_count(active_member_count)

    keys = exception_keys(no_class_dates)
    if today is None:
        today = today_in(cal.timezone)

    builders = {
        ViewMode.WEEKLY: _weekly_buckets,
        ViewMode.MONTHLY: _monthly_buckets,
        ViewMode.OVERALL: _overall_buckets,
    }
    buckets = builders[mode](cal, keys, actual_by_date, reference_date, active_member_count)

    summary_actual = sum((b.actual for b in buckets), ZERO)
    summary_expected = sum((b.expected for b in buckets), ZERO)

    if mode is ViewMode.WEEKLY:
        monday, _sunday = iso_week_bounds(reference_date)
        prior_start = monday - timedelta(days=7)
        baseline = sum_window(actual_by_date, prior_start, monday - timedelta(days=1))
        baseline_label = "last_week_actual"
    elif mode is ViewMode.MONTHLY:
        baseline = summary_expected
        baseline_label = "month_expected"
    else:
        if reference_date < cal.date_initiated:
            past_days = 0
        else:
            past_days = count_past_collection_days(
                cal.date_initiated, reference_date, cal, keys, today=today
            )
        baseline = cal.daily_amount * int(active_member_count) * past_days
        baseline_label = "perfect_compliance"

    peak = max((max(b.actual, b.expected) for b in buckets), default=ZERO)
    max_value = max(peak, Decimal("1"))

    window_start = buckets[0].start if buckets else reference_date
    window_end = buckets[-1].end if buckets else reference_date
    if mode is ViewMode.WEEKLY:
        window_start, window_end = iso_week_bounds(reference_date)

    pct = completion_pct(summary_actual, summary_expected)
    return ComplianceReport(
        view_mode=mode,
        reference_date=reference_date,
        window_start=window_start,
        window_end=window_end,
        buckets=tuple(buckets),
        summary_actual=summary_actual,
        summary_expected=summary_expected,
        comparison_baseline=Decimal(baseline),
        comparison_label=baseline_label,
        max_value=max_value,
        completion_pct=pct,
        completion_band=completion_band(pct),
    )
