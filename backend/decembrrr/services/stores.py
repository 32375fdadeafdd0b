# backend/decembrrr/services/stores.py
"""
Ledger, member and class stores.

Rows are validated into DTOs here, once, so the engine never reads raw
ORM or RPC shapes. Store failures surface as typed AppErrors.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ClassNotFound, RecordFailed, StudentNotFound, resolve_error
from ..models import FundClass, NoClassDate, Profile, Transaction
from ..schemas import MemberRecord, TransactionRecord
from ..domain.aggregation import utc_window
from ..domain.collection_calendar import ClassCalendar
from ..domain.ledger import BalanceTransition

log = logging.getLogger(__name__)


# -----------------------------
# Classes
# -----------------------------
def must_get_class(db: Session, *, class_id: int) -> FundClass:
    row = db.get(FundClass, class_id)
    if not row:
        raise ClassNotFound(f"class {class_id} not found")
    return row


def class_calendar(db: Session, *, class_id: int, default_timezone: str = "UTC") -> ClassCalendar:
    return ClassCalendar.from_row(must_get_class(db, class_id=class_id), default_timezone=default_timezone)


def no_class_rows(db: Session, *, class_id: int) -> list[NoClassDate]:
    return list(
        db.scalars(select(NoClassDate).where(NoClassDate.class_id == class_id).order_by(NoClassDate.date)).all()
    )


def no_class_reasons(db: Session, *, class_id: int) -> dict[date, str]:
    return {r.date: r.reason for r in no_class_rows(db, class_id=class_id)}


# -----------------------------
# Member store
# -----------------------------
def query_members(db: Session, *, class_id: int, active_only: bool = False) -> list[MemberRecord]:
    q = select(Profile).where(Profile.class_id == class_id)
    if active_only:
        q = q.where(Profile.is_active.is_(True))
    q = q.order_by(Profile.name, Profile.id)
    return [MemberRecord.model_validate(r) for r in db.scalars(q).all()]


def count_active_members(db: Session, *, class_id: int) -> int:
    n = db.scalar(
        select(func.count(Profile.id)).where(Profile.class_id == class_id, Profile.is_active.is_(True))
    )
    return int(n or 0)


def must_get_member(db: Session, *, member_id: int, class_id: Optional[int] = None) -> Profile:
    row = db.get(Profile, member_id)
    if not row or (class_id is not None and row.class_id != class_id):
        raise StudentNotFound(f"member {member_id} not found in class {class_id}")
    return row


def update_balance(db: Session, *, member_id: int, new_balance: Decimal) -> None:
    row = must_get_member(db, member_id=member_id)
    row.balance = new_balance
    db.add(row)


# -----------------------------
# Ledger store
# -----------------------------
def query_transactions(
    db: Session,
    *,
    class_id: int,
    txn_type: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    tz_name: str = "UTC",
    profile_id: Optional[int] = None,
    limit: Optional[int] = None,
    newest_first: bool = False,
) -> list[TransactionRecord]:
    """
    Ledger entries for a class. A date range is read in the class timezone,
    so the store window matches how the aggregator buckets timestamps.
    """
    q = select(Transaction, Profile.name).join(Profile, Profile.id == Transaction.profile_id, isouter=True)
    q = q.where(Transaction.class_id == class_id)
    if txn_type:
        q = q.where(Transaction.type == txn_type)
    if profile_id is not None:
        q = q.where(Transaction.profile_id == profile_id)
    if start is not None and end is not None:
        lo, hi = utc_window(start, end, tz_name)
        q = q.where(Transaction.created_at >= lo, Transaction.created_at < hi)

    order = desc(Transaction.created_at) if newest_first else Transaction.created_at
    q = q.order_by(order, Transaction.id)
    if limit is not None:
        q = q.limit(limit)

    out = []
    for txn, member_name in db.execute(q).all():
        rec = TransactionRecord.model_validate(txn)
        out.append(rec.model_copy(update={"member_name": member_name}))
    return out


def member_transactions(
    db: Session, *, member_id: int, txn_type: Optional[str] = None, limit: int = 50
) -> list[TransactionRecord]:
    q = select(Transaction).where(Transaction.profile_id == member_id)
    if txn_type:
        q = q.where(Transaction.type == txn_type)
    q = q.order_by(desc(Transaction.created_at), desc(Transaction.id)).limit(limit)
    return [TransactionRecord.model_validate(r) for r in db.scalars(q).all()]


def insert_transaction(
    db: Session,
    *,
    class_id: int,
    profile_id: int,
    transition: BalanceTransition,
    note: Optional[str] = None,
    created_by: Optional[int] = None,
) -> Transaction:
    """Append one ledger entry. Rejected writes raise RecordFailed; never retried."""
    row = Transaction(
        class_id=class_id,
        profile_id=profile_id,
        type=transition.entry_type,
        amount=transition.amount,
        balance_before=transition.balance_before,
        balance_after=transition.balance_after,
        note=note,
        created_by=created_by,
    )
    try:
        db.add(row)
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        err = resolve_error(e)
        log.error(
            "ledger_insert_failed",
            extra={"class_id": class_id, "profile_id": profile_id, "detail": err.detail},
        )
        raise RecordFailed(err.detail) from e
    return row
