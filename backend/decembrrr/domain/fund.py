# backend/decembrrr/domain/fund.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from .aggregation import DEDUCTION, DEPOSIT, row_field, bucket_date
from .collection_calendar import ClassCalendar, iso_week_bounds
from .projection import ZERO, count_past_collection_days, round_half_up


@dataclass(frozen=True)
class FundSummary:
    total_balance: Decimal
    active_count: int
    total_members: int
    in_debt: int
    total_deposits: Decimal
    total_deductions: Decimal
    goal_progress: Optional[int]
    collection_day_count: int
    expected_total: Decimal
    collection_rate: int
    daily_amount: Decimal


@dataclass(frozen=True)
class WeeklyAnalytics:
    week_start: date
    this_week_total: Decimal
    this_week_count: int
    last_week_total: Decimal
    last_week_count: int
    active_members: int
    change_pct: Optional[int]


class BalanceStatus(str, Enum):
    NO_BALANCE = "no_balance"
    LOW = "low"
    GOOD = "good"


@dataclass(frozen=True)
class MemberDeductionStatus:
    profile_id: int
    name: str
    balance: Decimal
    deducted_today: bool
    balance_status: BalanceStatus


def goal_progress(total_balance: Decimal, fund_goal: Optional[Decimal]) -> Optional[int]:
    """min(100, round(total / goal * 100)); None without a goal."""
    if fund_goal is None or Decimal(fund_goal) <= 0:
        return None
    pct = round_half_up(Decimal(total_balance) / Decimal(fund_goal) * 100)
    return max(0, min(100, pct))


def balance_status(balance: Any, low_threshold: Any = 50) -> BalanceStatus:
    b = Decimal(str(balance))
    if b <= 0:
        return BalanceStatus.NO_BALANCE
    if b < Decimal(str(low_threshold)):
        return BalanceStatus.LOW
    return BalanceStatus.GOOD


def _sum_type(txns: Iterable[Any], txn_type: str) -> Decimal:
    total = ZERO
    for t in txns:
        if str(row_field(t, "type") or "").lower() == txn_type:
            total += Decimal(str(row_field(t, "amount") or 0))
    return total


def fund_summary(
    cal: ClassCalendar,
    members: Iterable[Any],
    txns: Iterable[Any],
    no_class_dates: Iterable[Any],
    *,
    today: date,
) -> FundSummary:
    """
    Headline numbers for the president dashboard.

    expected_total covers every past collection day since the class started,
    priced at today's active member count.
    """
    members = list(members)
    txns = list(txns)

    total_balance = sum((Decimal(str(row_field(m, "balance") or 0)) for m in members), ZERO)
    active = sum(1 for m in members if row_field(m, "is_active"))
    in_debt = sum(1 for m in members if Decimal(str(row_field(m, "balance") or 0)) < 0)

    deposits = _sum_type(txns, DEPOSIT)
    deductions = _sum_type(txns, DEDUCTION)

    if today < cal.date_initiated:
        days = 0
    else:
        days = count_past_collection_days(cal.date_initiated, today, cal, no_class_dates, today=today)
    expected = cal.daily_amount * active * days
    rate = round_half_up(deductions / expected * 100) if expected > 0 else 0

    return FundSummary(
        total_balance=total_balance,
        active_count=active,
        total_members=len(members),
        in_debt=in_debt,
        total_deposits=deposits,
        total_deductions=deductions,
        goal_progress=goal_progress(total_balance, cal.fund_goal),
        collection_day_count=days,
        expected_total=expected,
        collection_rate=rate,
        daily_amount=cal.daily_amount,
    )


def weekly_analytics(
    txns: Iterable[Any],
    active_members: int,
    *,
    today: date,
    tz_name: str = "UTC",
) -> WeeklyAnalytics:
    """This ISO week vs the one before, deposits only."""
    monday, sunday = iso_week_bounds(today)
    prev_monday = monday - timedelta(days=7)

    this_total, last_total = ZERO, ZERO
    this_count, last_count = 0, 0
    for t in txns:
        if str(row_field(t, "type") or "").lower() != DEPOSIT:
            continue
        created = row_field(t, "created_at")
        if created is None:
            continue
        d = bucket_date(created, tz_name)
        amt = Decimal(str(row_field(t, "amount") or 0))
        if monday <= d <= sunday:
            this_total += amt
            this_count += 1
        elif prev_monday <= d < monday:
            last_total += amt
            last_count += 1

    change = None
    if last_total > 0:
        change = round_half_up((this_total - last_total) / last_total * 100)

    return WeeklyAnalytics(
        week_start=monday,
        this_week_total=this_total,
        this_week_count=this_count,
        last_week_total=last_total,
        last_week_count=last_count,
        active_members=int(active_members),
        change_pct=change,
    )


def deduction_status(
    members: Iterable[Any],
    deductions: Iterable[Any],
    *,
    today: date,
    tz_name: str = "UTC",
    low_threshold: Any = 50,
) -> list[MemberDeductionStatus]:
    """Active members with whether today's deduction has landed, by name."""
    deducted = set()
    for t in deductions:
        if str(row_field(t, "type") or "").lower() != DEDUCTION:
            continue
        created = row_field(t, "created_at")
        if created is not None and bucket_date(created, tz_name) == today:
            deducted.add(row_field(t, "profile_id"))

    out = []
    for m in members:
        if not row_field(m, "is_active"):
            continue
        bal = Decimal(str(row_field(m, "balance") or 0))
        out.append(
            MemberDeductionStatus(
                profile_id=row_field(m, "id"),
                name=row_field(m, "name") or "",
                balance=bal,
                deducted_today=row_field(m, "id") in deducted,
                balance_status=balance_status(bal, low_threshold),
            )
        )
    out.sort(key=lambda s: s.name.lower())
    return out
