# backend/decembrrr/routers/calendar.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..clients.ledger_rpc import LedgerRpcClient
from ..config import Settings
from ..db import get_db
from ..deps import get_ledger_rpc, get_settings
from ..schemas import ClassifyOut, MarkNoClassOut, NoClassIn, NoClassOut
from ..domain.collection_calendar import COLLECTING_STATUSES
from ..services import no_class as svc
from ..services.analytics import classify_date

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/classes/{class_id}/no-class", response_model=list[NoClassOut])
def list_no_class(class_id: int, db: Session = Depends(get_db)):
    return svc.list_no_class(db, class_id=class_id)


@router.post("/classes/{class_id}/no-class", response_model=MarkNoClassOut, status_code=201)
def mark_no_class(
    class_id: int,
    payload: NoClassIn,
    db: Session = Depends(get_db),
    rpc: LedgerRpcClient = Depends(get_ledger_rpc),
    s: Settings = Depends(get_settings),
):
    res = svc.mark_no_class(
        db,
        rpc,
        class_id=class_id,
        target_date=payload.date,
        reason=payload.reason,
        created_by=payload.created_by,
        default_timezone=s.default_class_timezone,
    )
    return {"exception": NoClassOut.model_validate(res.exception), "rolled_back": res.rolled_back}


@router.delete("/no-class/{exception_id}", status_code=204)
def unmark_no_class(exception_id: int, db: Session = Depends(get_db)):
    svc.unmark_no_class(db, exception_id=exception_id)
    return Response(status_code=204)


@router.get("/classes/{class_id}/classify", response_model=ClassifyOut)
def classify(
    class_id: int,
    on: date = Query(alias="date"),
    db: Session = Depends(get_db),
    s: Settings = Depends(get_settings),
):
    status, expected = classify_date(db, class_id=class_id, target=on, default_timezone=s.default_class_timezone)
    return {
        "date": on,
        "status": status.value,
        "is_collection_day": status in COLLECTING_STATUSES,
        "expected": expected,
    }
