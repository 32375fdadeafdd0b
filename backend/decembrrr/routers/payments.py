# backend/decembrrr/routers/payments.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..clients.ledger_rpc import LedgerRpcClient
from ..db import get_db
from ..deps import get_ledger_rpc
from ..schemas import DepositIn, DepositOut, StudentLookup, TransactionRecord
from ..services import payments as svc

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/deposits", response_model=DepositOut, status_code=201)
def record_deposit(payload: DepositIn, db: Session = Depends(get_db)):
    return svc.record_deposit(
        db,
        member_id=payload.member_id,
        class_id=payload.class_id,
        amount=payload.amount,
        note=payload.note,
        recorded_by=payload.recorded_by,
    )


@router.get("/classes/{class_id}/transactions", response_model=list[TransactionRecord])
def class_transactions(
    class_id: int,
    limit: int = Query(default=svc.CLASS_HISTORY_LIMIT, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return svc.class_transactions(db, class_id=class_id, limit=limit)


@router.get("/members/{member_id}/transactions", response_model=list[TransactionRecord])
def member_transactions(
    member_id: int,
    limit: int = Query(default=svc.MEMBER_HISTORY_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return svc.my_transactions(db, member_id=member_id, limit=limit)


@router.get("/members/{member_id}/deductions", response_model=list[TransactionRecord])
def member_deductions(
    member_id: int,
    limit: int = Query(default=svc.MEMBER_HISTORY_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return svc.recent_deductions(db, member_id=member_id, limit=limit)


@router.get("/lookup/{student_id}", response_model=StudentLookup)
def lookup_student(student_id: int, rpc: LedgerRpcClient = Depends(get_ledger_rpc)):
    return svc.lookup_student(rpc, student_id=student_id)
