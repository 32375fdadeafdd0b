# backend/decembrrr/services/deduction_job.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..clients.ledger_rpc import LedgerRpcClient
from ..errors import AppError
from ..schemas import DeductionRunResult
from ..domain.collection_calendar import today_in

log = logging.getLogger(__name__)


def deduction_target_date(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date the daily job acts on: today in the deduction timezone."""
    return today_in(tz_name, now)


def run_daily_deduction(
    rpc: LedgerRpcClient,
    *,
    tz_name: str,
    target_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DeductionRunResult:
    """
    Ask the ledger authority to post today's deductions.

    Safe to re-run for the same date: the remote procedure owns exactly-once.
    Failures are logged and re-raised so the scheduler records them.
    """
    target = target_date or deduction_target_date(tz_name, now)
    log.info("deduction_started", extra={"target_date": target.isoformat()})
    try:
        result = rpc.run_daily_deduction(target)
    except AppError as e:
        log.error("deduction_failed", extra={"target_date": target.isoformat(), "detail": e.detail})
        raise
    log.info(
        "deduction_finished",
        extra={"target_date": target.isoformat(), "detail": result.model_dump(mode="json")},
    )
    return result
