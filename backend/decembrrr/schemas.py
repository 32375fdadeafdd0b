# backend/decembrrr/schemas.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Money stays Decimal in-process and goes out as a JSON number.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def _iso_weekdays(v: Optional[list[int]]) -> Optional[list[int]]:
    if v is None:
        return v
    if not v or any(d < 1 or d > 7 for d in v):
        raise ValueError("collection_days must be a non-empty list of ISO weekdays 1..7")
    return sorted(set(v))


# -------------------- Classes --------------------

class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    daily_amount: Decimal = Field(default=Decimal("10"), gt=0)
    collection_frequency: str = Field(default="daily", pattern="^(daily|weekly)$")
    collection_days: Optional[list[int]] = None
    date_initiated: Optional[date] = None
    fund_goal: Optional[Decimal] = Field(default=None, gt=0)
    timezone: Optional[str] = None
    president_name: Optional[str] = None
    president_email: Optional[str] = None

    @field_validator("collection_days")
    @classmethod
    def check_collection_days(cls, v):
        return _iso_weekdays(v)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    daily_amount: Optional[Decimal] = Field(default=None, gt=0)
    collection_frequency: Optional[str] = Field(default=None, pattern="^(daily|weekly)$")
    collection_days: Optional[list[int]] = None
    date_initiated: Optional[date] = None
    fund_goal: Optional[Decimal] = Field(default=None, gt=0)
    timezone: Optional[str] = None

    @field_validator("collection_days")
    @classmethod
    def check_collection_days(cls, v):
        return _iso_weekdays(v)


class ClassOut(BaseModel):
    id: int
    name: str
    invite_code: str
    daily_amount: Money
    collection_frequency: str
    collection_days: list[int]
    date_initiated: date
    fund_goal: Optional[Money] = None
    timezone: Optional[str] = None
    president_id: Optional[int] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class JoinClassIn(BaseModel):
    invite_code: str = Field(min_length=1, max_length=12)
    name: str = Field(min_length=1, max_length=160)
    email: Optional[str] = None


# -------------------- Members --------------------

class MemberRecord(BaseModel):
    """A member row as the stores hand it to the engine."""

    id: int
    class_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    role: str = "student"
    balance: Money = Decimal("0")
    is_active: bool = True
    model_config = ConfigDict(from_attributes=True)


class MemberActiveIn(BaseModel):
    is_active: bool


# -------------------- Ledger --------------------

class TransactionRecord(BaseModel):
    id: int
    class_id: int
    profile_id: int
    type: str = Field(pattern="^(deposit|deduction)$")
    amount: Money
    balance_before: Money
    balance_after: Money
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    member_name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

    @field_validator("amount")
    @classmethod
    def check_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("ledger amounts are positive; the type carries the sign")
        return v


class DepositIn(BaseModel):
    class_id: int
    member_id: int
    amount: Decimal
    note: Optional[str] = None
    recorded_by: Optional[int] = None


class DepositOut(BaseModel):
    balance_before: Money
    balance_after: Money
    transaction: TransactionRecord


class StudentLookup(BaseModel):
    """Result of the remote lookup_student procedure."""

    found: bool
    in_class: bool = False
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    class_id: Optional[int] = None
    balance: Optional[Money] = None
    is_active: Optional[bool] = None
    model_config = ConfigDict(extra="ignore")


# -------------------- No-class exceptions --------------------

class NoClassIn(BaseModel):
    date: date
    reason: str = Field(default="No class", max_length=500)
    created_by: Optional[int] = None


class NoClassOut(BaseModel):
    id: int
    class_id: int
    date: date
    reason: str
    created_by: Optional[int] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RollbackResult(BaseModel):
    """Result of the remote rollback_no_class_date procedure."""

    status: str = "ok"
    rolled_back: int = Field(default=0, ge=0)
    model_config = ConfigDict(extra="ignore")


class MarkNoClassOut(BaseModel):
    exception: NoClassOut
    rolled_back: int


class ClassifyOut(BaseModel):
    date: date
    status: str
    is_collection_day: bool
    expected: Money


# -------------------- Deduction job --------------------

class DeductionRunResult(BaseModel):
    status: str = "ok"
    target_date: date
    classes: Optional[int] = None
    deducted: Optional[int] = None
    skipped: Optional[int] = None
    model_config = ConfigDict(extra="allow")


# -------------------- Analytics --------------------

class ReportBucketOut(BaseModel):
    label: str
    start: date
    end: date
    actual: Money
    expected: Money
    model_config = ConfigDict(from_attributes=True)


class ReportOut(BaseModel):
    view_mode: str
    reference_date: date
    window_start: date
    window_end: date
    buckets: list[ReportBucketOut]
    summary_actual: Money
    summary_expected: Money
    comparison_baseline: Money
    comparison_label: str
    max_value: Money
    completion_pct: int
    completion_band: str
    model_config = ConfigDict(from_attributes=True)


class CalendarCellOut(BaseModel):
    date: date
    day: int
    status: str
    percent: int
    band: Optional[str] = None
    clickable: bool
    reason: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class HeatmapOut(BaseModel):
    year: int
    month: int
    leading_blanks: int
    can_go_prev: bool
    can_go_next: bool
    active_members: int
    percent_by_date: dict[str, int]
    cells: list[CalendarCellOut]


class FundSummaryOut(BaseModel):
    total_balance: Money
    active_count: int
    total_members: int
    in_debt: int
    total_deposits: Money
    total_deductions: Money
    goal_progress: Optional[int] = None
    collection_day_count: int
    expected_total: Money
    collection_rate: int
    daily_amount: Money
    model_config = ConfigDict(from_attributes=True)


class WeeklyAnalyticsOut(BaseModel):
    week_start: date
    this_week_total: Money
    this_week_count: int
    last_week_total: Money
    last_week_count: int
    active_members: int
    change_pct: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class MemberDeductionStatusOut(BaseModel):
    profile_id: int
    name: str
    balance: Money
    deducted_today: bool
    balance_status: str
    model_config = ConfigDict(from_attributes=True)
