# backend/decembrrr/services/classes.py
from __future__ import annotations

import logging
import secrets
import string
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import AlreadyMember, AppError, ErrorCode, InviteCodeInvalid
from ..models import FundClass, Profile
from ..domain.collection_calendar import ClassCalendar, today_in, zone
from .stores import must_get_class, must_get_member

log = logging.getLogger(__name__)

INVITE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_LENGTH = 6
_INVITE_ATTEMPTS = 5


def new_invite_code() -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_LENGTH))


def _unused_invite_code(db: Session) -> str:
    for _ in range(_INVITE_ATTEMPTS):
        code = new_invite_code()
        if db.scalar(select(FundClass.id).where(FundClass.invite_code == code)) is None:
            return code
    raise AppError("could not allocate an unused invite code", code=ErrorCode.CLASS_CREATE_FAILED)


def _check_config(row: FundClass, default_timezone: str) -> None:
    # ClassCalendar validates amount, goal and weekdays; zone() validates the timezone
    ClassCalendar.from_row(row, default_timezone=default_timezone)
    zone(row.timezone or default_timezone)


def create_class(
    db: Session,
    *,
    name: str,
    daily_amount: Decimal = Decimal("10"),
    collection_frequency: str = "daily",
    collection_days: Optional[list[int]] = None,
    date_initiated: Optional[date] = None,
    fund_goal: Optional[Decimal] = None,
    timezone: Optional[str] = None,
    president_name: Optional[str] = None,
    president_email: Optional[str] = None,
    default_collection_days: Optional[list[int]] = None,
    default_timezone: str = "UTC",
) -> FundClass:
    """
    Create a class with a fresh 6-character invite code.
    When a president name is given, their profile is created and linked.
    """
    row = FundClass(
        name=name.strip(),
        daily_amount=Decimal(str(daily_amount)),
        collection_frequency=collection_frequency,
        collection_days=sorted(set(collection_days or default_collection_days or [1, 2, 3, 4, 5])),
        date_initiated=date_initiated or today_in(timezone or default_timezone),
        fund_goal=Decimal(str(fund_goal)) if fund_goal is not None else None,
        timezone=timezone,
    )
    _check_config(row, default_timezone)

    row.invite_code = _unused_invite_code(db)
    try:
        db.add(row)
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise AppError(str(e), code=ErrorCode.CLASS_CREATE_FAILED) from e

    if president_name:
        president = Profile(
            class_id=row.id,
            name=president_name.strip(),
            email=president_email,
            role="president",
            balance=Decimal("0"),
            is_active=True,
        )
        db.add(president)
        db.flush()
        row.president_id = president.id

    db.commit()
    db.refresh(row)
    log.info("class_created", extra={"class_id": row.id})
    return row


def get_class(db: Session, *, class_id: int) -> FundClass:
    return must_get_class(db, class_id=class_id)


UPDATABLE = (
    "name",
    "daily_amount",
    "collection_frequency",
    "collection_days",
    "date_initiated",
    "fund_goal",
    "timezone",
)
CLEARABLE = ("fund_goal", "timezone")


def update_class(db: Session, *, class_id: int, changes: dict[str, Any], default_timezone: str = "UTC") -> FundClass:
    row = must_get_class(db, class_id=class_id)
    for k in UPDATABLE:
        if k not in changes:
            continue
        # null clears a nullable column; other columns ignore it
        if changes[k] is None and k not in CLEARABLE:
            continue
        setattr(row, k, changes[k])

    # validate before anything reaches the database
    try:
        _check_config(row, default_timezone)
    except AppError:
        db.rollback()
        raise

    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("class_updated", extra={"class_id": row.id})
    return row


def delete_class(db: Session, *, class_id: int) -> None:
    """Members are detached (class_id -> NULL); the ledger is kept."""
    row = must_get_class(db, class_id=class_id)
    db.delete(row)
    db.commit()
    log.info("class_deleted", extra={"class_id": class_id})


def join_class(db: Session, *, invite_code: str, name: str, email: Optional[str] = None) -> Profile:
    code = (invite_code or "").strip().upper()
    cls = db.scalar(select(FundClass).where(FundClass.invite_code == code))
    if not cls:
        raise InviteCodeInvalid(f"no class with invite code {code!r}")

    member = None
    if email:
        member = db.scalar(select(Profile).where(func.lower(Profile.email) == email.strip().lower()))
    if member is not None and member.class_id is not None:
        raise AlreadyMember(f"profile {member.id} already belongs to class {member.class_id}")

    if member is None:
        member = Profile(name=name.strip(), email=email, role="student", balance=Decimal("0"), is_active=True)
    member.class_id = cls.id

    db.add(member)
    db.commit()
    db.refresh(member)
    log.info("class_joined", extra={"class_id": cls.id, "profile_id": member.id})
    return member


def set_member_active(db: Session, *, member_id: int, is_active: bool) -> Profile:
    row = must_get_member(db, member_id=member_id)
    row.is_active = bool(is_active)
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info(
        "member_active_changed",
        extra={"class_id": row.class_id, "profile_id": row.id},
    )
    return row
