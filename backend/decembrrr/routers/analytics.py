# backend/decembrrr/routers/analytics.py
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..deps import get_settings
from ..schemas import (
    CalendarCellOut,
    FundSummaryOut,
    HeatmapOut,
    MemberDeductionStatusOut,
    ReportBucketOut,
    ReportOut,
    WeeklyAnalyticsOut,
)
from ..services import analytics as svc

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/classes/{class_id}/report", response_model=ReportOut)
def report(
    class_id: int,
    view: str = Query(default="weekly"),
    ref: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    s: Settings = Depends(get_settings),
):
    r = svc.compliance_report(
        db,
        class_id=class_id,
        view_mode=view,
        reference_date=ref,
        default_timezone=s.default_class_timezone,
    )
    return ReportOut(
        view_mode=r.view_mode.value,
        reference_date=r.reference_date,
        window_start=r.window_start,
        window_end=r.window_end,
        buckets=[ReportBucketOut.model_validate(b) for b in r.buckets],
        summary_actual=r.summary_actual,
        summary_expected=r.summary_expected,
        comparison_baseline=r.comparison_baseline,
        comparison_label=r.comparison_label,
        max_value=r.max_value,
        completion_pct=r.completion_pct,
        completion_band=r.completion_band.value,
    )


@router.get("/classes/{class_id}/heatmap", response_model=HeatmapOut)
def heatmap(
    class_id: int,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    s: Settings = Depends(get_settings),
):
    heat, grid = svc.heatmap_month(
        db, class_id=class_id, year=year, month=month, default_timezone=s.default_class_timezone
    )
    cells = []
    for c in grid.cells:
        cells.append(
            CalendarCellOut(
                date=c.date,
                day=c.day,
                status=c.status.value,
                percent=c.percent,
                band=c.band.value if c.band else None,
                clickable=c.clickable,
                reason=c.reason,
            )
        )
    return HeatmapOut(
        year=grid.year,
        month=grid.month,
        leading_blanks=grid.leading_blanks,
        can_go_prev=grid.can_go_prev,
        can_go_next=grid.can_go_next,
        active_members=grid.active_members,
        percent_by_date={d.isoformat(): pct for d, pct in heat.items()},
        cells=cells,
    )


@router.get("/classes/{class_id}/summary", response_model=FundSummaryOut)
def summary(class_id: int, db: Session = Depends(get_db), s: Settings = Depends(get_settings)):
    f = svc.class_fund_summary(db, class_id=class_id, default_timezone=s.default_class_timezone)
    return FundSummaryOut(**asdict(f))


@router.get("/classes/{class_id}/weekly", response_model=WeeklyAnalyticsOut)
def weekly(class_id: int, db: Session = Depends(get_db), s: Settings = Depends(get_settings)):
    w = svc.class_weekly_analytics(db, class_id=class_id, default_timezone=s.default_class_timezone)
    return WeeklyAnalyticsOut(**asdict(w))


@router.get("/classes/{class_id}/deduction-status", response_model=list[MemberDeductionStatusOut])
def deduction_status(class_id: int, db: Session = Depends(get_db), s: Settings = Depends(get_settings)):
    rows = svc.class_deduction_status(
        db,
        class_id=class_id,
        default_timezone=s.default_class_timezone,
        low_balance_threshold=s.low_balance_threshold,
    )
    return [
        MemberDeductionStatusOut(
            profile_id=r.profile_id,
            name=r.name,
            balance=r.balance,
            deducted_today=r.deducted_today,
            balance_status=r.balance_status.value,
        )
        for r in rows
    ]
