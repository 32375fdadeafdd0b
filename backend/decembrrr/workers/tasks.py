# backend/decembrrr/workers/tasks.py
from __future__ import annotations

from datetime import date
from typing import Optional

from ..clients.ledger_rpc import LedgerRpcClient
from ..config import settings
from ..services.deduction_job import run_daily_deduction as run_job
from .celery_app import celery_app


@celery_app.task(name="decembrrr.workers.tasks.run_daily_deduction")
def run_daily_deduction(target_date: Optional[str] = None) -> dict:
    """
    Beat entry point. Not auto-retried: a failed run is reported to the
    scheduler and re-triggered by an operator (the remote call is idempotent
    per date, so a manual re-run is safe).
    """
    rpc = LedgerRpcClient.from_settings(settings)
    target: Optional[date] = date.fromisoformat(target_date) if target_date else None
    result = run_job(rpc, tz_name=settings.deduction_timezone, target_date=target)
    return result.model_dump(mode="json")
