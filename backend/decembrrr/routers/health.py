# backend/decembrrr/routers/health.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..deps import get_ledger_rpc, get_settings
from ..clients.ledger_rpc import LedgerRpcClient
from ..domain.heatmap import HEAT_CRITICAL_MAX, HEAT_PARTIAL_MAX
from ..domain.reports import COMPLETION_ALERT_BELOW, COMPLETION_HEALTHY_FROM

router = APIRouter(tags=["health"])


@router.get("/health", response_model=dict)
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"ok": True}


@router.get("/meta", response_model=dict)
def meta(s: Settings = Depends(get_settings), rpc: LedgerRpcClient = Depends(get_ledger_rpc)):
    return {
        "version": s.app_version,
        "env": s.app_env,
        "ledger_rpc_configured": rpc.enabled(),
        "default_class_timezone": s.default_class_timezone,
        "deduction_timezone": s.deduction_timezone,
        "thresholds": {
            "heatmap": {"critical_max": HEAT_CRITICAL_MAX, "partial_max": HEAT_PARTIAL_MAX},
            "completion": {"alert_below": COMPLETION_ALERT_BELOW, "healthy_from": COMPLETION_HEALTHY_FROM},
        },
    }
