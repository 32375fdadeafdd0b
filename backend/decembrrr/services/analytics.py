# backend/decembrrr/services/analytics.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidArgument
from ..domain.aggregation import DEDUCTION, DEPOSIT, actual_amount_by_date
from ..domain.collection_calendar import (
    ClassCalendar,
    CollectionDayStatus,
    classify,
    iso_week_bounds,
    month_bounds,
    today_in,
)
from ..domain.fund import (
    FundSummary,
    MemberDeductionStatus,
    WeeklyAnalytics,
    deduction_status,
    fund_summary,
    weekly_analytics,
)
from ..domain.heatmap import CalendarMonth, calendar_month, monthly_heatmap
from ..domain.projection import expected_amount
from ..domain.reports import ComplianceReport, ViewMode, build_report, report_window
from .stores import (
    count_active_members,
    must_get_class,
    no_class_reasons,
    query_members,
    query_transactions,
)

log = logging.getLogger(__name__)


def _calendar(db: Session, class_id: int, default_timezone: str) -> ClassCalendar:
    return ClassCalendar.from_row(must_get_class(db, class_id=class_id), default_timezone=default_timezone)


def compliance_report(
    db: Session,
    *,
    class_id: int,
    view_mode: ViewMode | str,
    reference_date: Optional[date] = None,
    default_timezone: str = "UTC",
    today: Optional[date] = None,
) -> ComplianceReport:
    cal = _calendar(db, class_id, default_timezone)
    try:
        mode = ViewMode(view_mode)
    except ValueError as e:
        raise InvalidArgument(f"unknown view mode {view_mode!r}") from e
    if today is None:
        today = today_in(cal.timezone)
    ref = reference_date or today

    exceptions = no_class_reasons(db, class_id=class_id)
    active = count_active_members(db, class_id=class_id)

    start, end = report_window(mode, cal, ref)
    txns = query_transactions(db, class_id=class_id, txn_type=DEPOSIT, start=start, end=end, tz_name=cal.timezone)
    actual = actual_amount_by_date(txns, start=start, end=end, tz_name=cal.timezone)

    report = build_report(mode, cal, exceptions.keys(), actual, ref, active, today=today)
    log.info("report_built", extra={"class_id": class_id, "view_mode": report.view_mode.value})
    return report


def heatmap_month(
    db: Session,
    *,
    class_id: int,
    year: int,
    month: int,
    default_timezone: str = "UTC",
    today: Optional[date] = None,
) -> tuple[dict[date, int], CalendarMonth]:
    """Per-day payer percent plus the calendar grid for one month."""
    cal = _calendar(db, class_id, default_timezone)
    if today is None:
        today = today_in(cal.timezone)

    active = count_active_members(db, class_id=class_id)
    reasons = no_class_reasons(db, class_id=class_id)

    start, end = month_bounds(year, month)

    txns = query_transactions(db, class_id=class_id, txn_type=DEPOSIT, start=start, end=end, tz_name=cal.timezone)
    heat = monthly_heatmap(txns, year, month, active, tz_name=cal.timezone)
    return heat, calendar_month(year, month, cal, reasons, heat, active, today=today)


def classify_date(
    db: Session,
    *,
    class_id: int,
    target: date,
    default_timezone: str = "UTC",
    today: Optional[date] = None,
) -> tuple[CollectionDayStatus, Decimal]:
    cal = _calendar(db, class_id, default_timezone)
    keys = no_class_reasons(db, class_id=class_id).keys()
    status = classify(target, cal, keys, today=today)
    expected = expected_amount(target, cal, count_active_members(db, class_id=class_id), keys)
    return status, expected


def class_fund_summary(
    db: Session, *, class_id: int, default_timezone: str = "UTC", today: Optional[date] = None
) -> FundSummary:
    cal = _calendar(db, class_id, default_timezone)
    if today is None:
        today = today_in(cal.timezone)
    members = query_members(db, class_id=class_id)
    txns = query_transactions(db, class_id=class_id)
    exceptions = no_class_reasons(db, class_id=class_id).keys()
    return fund_summary(cal, members, txns, exceptions, today=today)


def class_weekly_analytics(
    db: Session, *, class_id: int, default_timezone: str = "UTC", today: Optional[date] = None
) -> WeeklyAnalytics:
    cal = _calendar(db, class_id, default_timezone)
    if today is None:
        today = today_in(cal.timezone)
    monday, sunday = iso_week_bounds(today)
    start = monday - timedelta(days=7)
    txns = query_transactions(db, class_id=class_id, txn_type=DEPOSIT, start=start, end=sunday, tz_name=cal.timezone)
    return weekly_analytics(txns, count_active_members(db, class_id=class_id), today=today, tz_name=cal.timezone)


def class_deduction_status(
    db: Session,
    *,
    class_id: int,
    default_timezone: str = "UTC",
    low_balance_threshold: float = 50.0,
    today: Optional[date] = None,
) -> list[MemberDeductionStatus]:
    cal = _calendar(db, class_id, default_timezone)
    if today is None:
        today = today_in(cal.timezone)
    members = query_members(db, class_id=class_id, active_only=True)
    deductions = query_transactions(
        db, class_id=class_id, txn_type=DEDUCTION, start=today, end=today, tz_name=cal.timezone
    )
    return deduction_status(
        members, deductions, today=today, tz_name=cal.timezone, low_threshold=low_balance_threshold
    )
