# backend/decembrrr/services/payments.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..clients.ledger_rpc import LedgerRpcClient
from ..errors import InvalidAmount, StudentNotFound
from ..schemas import DepositOut, StudentLookup, TransactionRecord
from ..domain.aggregation import DEDUCTION, DEPOSIT
from ..domain.ledger import apply_entry
from .stores import insert_transaction, member_transactions, must_get_class, must_get_member, query_transactions

log = logging.getLogger(__name__)

DEFAULT_DEPOSIT_NOTE = "Cash payment"
MEMBER_HISTORY_LIMIT = 50
CLASS_HISTORY_LIMIT = 100


def _amount(raw: Any) -> Decimal:
    try:
        amt = Decimal(str(raw))
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmount(f"amount {raw!r} is not a number") from e
    if not amt.is_finite() or amt <= 0:
        raise InvalidAmount(f"amount must be > 0, got {raw}")
    return amt


def record_deposit(
    db: Session,
    *,
    member_id: int,
    class_id: int,
    amount: Any,
    note: Optional[str] = None,
    recorded_by: Optional[int] = None,
) -> DepositOut:
    """
    Cash handed to the president: one deposit entry plus the balance update,
    committed together. Amount is checked before anything is written.
    """
    amt = _amount(amount)
    must_get_class(db, class_id=class_id)
    member = must_get_member(db, member_id=member_id, class_id=class_id)

    transition = apply_entry(member.balance, DEPOSIT, amt)
    row = insert_transaction(
        db,
        class_id=class_id,
        profile_id=member.id,
        transition=transition,
        note=(note or "").strip() or DEFAULT_DEPOSIT_NOTE,
        created_by=recorded_by,
    )
    member.balance = transition.balance_after
    db.add(member)
    db.commit()
    db.refresh(row)

    log.info(
        "deposit_recorded",
        extra={"class_id": class_id, "profile_id": member.id, "amount": str(transition.amount)},
    )
    return DepositOut(
        balance_before=transition.balance_before,
        balance_after=transition.balance_after,
        transaction=TransactionRecord.model_validate(row).model_copy(update={"member_name": member.name}),
    )


def class_transactions(db: Session, *, class_id: int, limit: int = CLASS_HISTORY_LIMIT) -> list[TransactionRecord]:
    must_get_class(db, class_id=class_id)
    return query_transactions(db, class_id=class_id, limit=limit, newest_first=True)


def my_transactions(db: Session, *, member_id: int, limit: int = MEMBER_HISTORY_LIMIT) -> list[TransactionRecord]:
    must_get_member(db, member_id=member_id)
    return member_transactions(db, member_id=member_id, limit=limit)


def recent_deductions(db: Session, *, member_id: int, limit: int = MEMBER_HISTORY_LIMIT) -> list[TransactionRecord]:
    must_get_member(db, member_id=member_id)
    return member_transactions(db, member_id=member_id, txn_type=DEDUCTION, limit=limit)


def lookup_student(rpc: LedgerRpcClient, *, student_id: int) -> StudentLookup:
    res = rpc.lookup_student(student_id)
    if not res.found:
        raise StudentNotFound(f"student {student_id} not found")
    return res
