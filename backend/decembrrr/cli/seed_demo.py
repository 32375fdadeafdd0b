# backend/decembrrr/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from decembrrr.models import FundClass, NoClassDate, Profile, Transaction
from decembrrr.domain.aggregation import DEPOSIT
from decembrrr.domain.collection_calendar import ClassCalendar, iter_dates, is_collection_day, today_in
from decembrrr.domain.ledger import apply_entry
from decembrrr.services.classes import create_class

DEMO_STUDENTS = ("Ana", "Ben", "Carla", "Dino", "Ella", "Fritz", "Gwen", "Hugo")


@dataclass(frozen=True)
class SeedResult:
    class_id: int
    invite_code: str
    members: int
    deposits: int


def _get_or_create_class(db: Session, *, name: str, start: date, daily_amount: Decimal) -> FundClass:
    row = db.scalar(select(FundClass).where(FundClass.name == name))
    if row:
        return row
    return create_class(
        db,
        name=name,
        daily_amount=daily_amount,
        date_initiated=start,
        fund_goal=Decimal("5000"),
        president_name="Pres",
        president_email="president@demo.local",
    )


def seed_demo(
    db: Session,
    *,
    class_name: str = "Demo Class",
    start: Optional[date] = None,
    days: int = 14,
    daily_amount: Decimal = Decimal("10"),
) -> SeedResult:
    """
    A class with a handful of students and a couple of weeks of deposits.
    Re-running reuses the class and does not add students twice.
    """
    start = start or (today_in("UTC") - timedelta(days=days))
    cls = _get_or_create_class(db, name=class_name, start=start, daily_amount=daily_amount)

    existing = {p.name for p in db.scalars(select(Profile).where(Profile.class_id == cls.id)).all()}
    for i, name in enumerate(DEMO_STUDENTS):
        if name in existing:
            continue
        db.add(
            Profile(
                class_id=cls.id,
                name=name,
                email=f"{name.lower()}@demo.local",
                role="student",
                balance=Decimal("0"),
                is_active=(i != len(DEMO_STUDENTS) - 1),
            )
        )
    db.flush()

    if not db.scalar(select(NoClassDate.id).where(NoClassDate.class_id == cls.id)):
        db.add(NoClassDate(class_id=cls.id, date=start + timedelta(days=2), reason="Holiday"))
    db.flush()

    cal = ClassCalendar.from_row(cls)
    members = list(db.scalars(select(Profile).where(Profile.class_id == cls.id, Profile.role == "student")).all())
    keys = [r.date for r in db.scalars(select(NoClassDate).where(NoClassDate.class_id == cls.id)).all()]

    n = 0
    end = min(start + timedelta(days=days), today_in(cal.timezone))
    for d in iter_dates(start, end):
        if not is_collection_day(d, cal, keys):
            continue
        for j, m in enumerate(members):
            # every third student skips every other day
            if j % 3 == 0 and d.toordinal() % 2 == 0:
                continue
            t = apply_entry(m.balance, DEPOSIT, cal.daily_amount)
            db.add(
                Transaction(
                    class_id=cls.id,
                    profile_id=m.id,
                    type=t.entry_type,
                    amount=t.amount,
                    balance_before=t.balance_before,
                    balance_after=t.balance_after,
                    note="Cash payment",
                    created_at=datetime.combine(d, time(8, 30)),  # naive UTC, as the ledger stores it
                )
            )
            m.balance = t.balance_after
            n += 1

    db.commit()
    return SeedResult(class_id=cls.id, invite_code=cls.invite_code, members=len(members), deposits=n)
