# backend/decembrrr/services/no_class.py
"""
No-class exception ledger.

Marking a date writes the exception row and asks the ledger authority to
reverse that day's deductions. Unmarking only removes the row: reversed
deductions are never re-created.

There is no locking here. Two presidents, or a president and the daily
job, acting on the same class at once can interleave.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..clients.ledger_rpc import LedgerRpcClient
from ..errors import AppError, DuplicateExceptionError, ExceptionNotFound, resolve_error
from ..models import NoClassDate
from ..domain.collection_calendar import ClassCalendar, today_in
from .stores import must_get_class, no_class_rows

log = logging.getLogger(__name__)

DEFAULT_REASON = "No class"


@dataclass(frozen=True)
class MarkResult:
    exception: NoClassDate
    rolled_back: int


def list_no_class(db: Session, *, class_id: int) -> list[NoClassDate]:
    must_get_class(db, class_id=class_id)
    return no_class_rows(db, class_id=class_id)


def rollback_eligible(target: date, *, today: date) -> bool:
    """Only days that have started can carry deductions to reverse."""
    return target <= today


def mark_no_class(
    db: Session,
    rpc: LedgerRpcClient,
    *,
    class_id: int,
    target_date: date,
    reason: Optional[str] = None,
    created_by: Optional[int] = None,
    default_timezone: str = "UTC",
    today: Optional[date] = None,
) -> MarkResult:
    """
    Raises DuplicateExceptionError when the date is already marked; nothing
    is written and no reversal is requested in that case.

    For a future date no reversal is requested and rolled_back is 0. For a
    past or current date the reversal runs before commit, so a failed
    reversal leaves no exception row behind.
    """
    cls = must_get_class(db, class_id=class_id)
    cal = ClassCalendar.from_row(cls, default_timezone=default_timezone)
    if today is None:
        today = today_in(cal.timezone)

    exists = db.scalar(
        select(NoClassDate.id).where(NoClassDate.class_id == class_id, NoClassDate.date == target_date)
    )
    if exists is not None:
        raise DuplicateExceptionError(f"{target_date.isoformat()} already marked for class {class_id}")

    row = NoClassDate(
        class_id=class_id,
        date=target_date,
        reason=(reason or "").strip() or DEFAULT_REASON,
        created_by=created_by,
    )
    try:
        db.add(row)
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise resolve_error(e) from e

    rolled_back = 0
    if rollback_eligible(target_date, today=today):
        try:
            result = rpc.rollback_no_class_date(class_id, target_date)
        except AppError:
            db.rollback()
            log.error(
                "no_class_rollback_failed",
                extra={"class_id": class_id, "target_date": target_date.isoformat()},
            )
            raise
        rolled_back = result.rolled_back

    db.commit()
    db.refresh(row)
    log.info(
        "no_class_marked",
        extra={
            "class_id": class_id,
            "exception_id": row.id,
            "target_date": target_date.isoformat(),
            "rolled_back": rolled_back,
        },
    )
    return MarkResult(exception=row, rolled_back=rolled_back)


def unmark_no_class(db: Session, *, exception_id: int) -> None:
    """Deletes the exception only. Reversed deductions stay reversed."""
    row = db.get(NoClassDate, exception_id)
    if not row:
        raise ExceptionNotFound(f"no-class exception {exception_id} not found")

    class_id, target = row.class_id, row.date
    db.delete(row)
    db.commit()
    log.info(
        "no_class_unmarked",
        extra={"class_id": class_id, "exception_id": exception_id, "target_date": target.isoformat()},
    )
