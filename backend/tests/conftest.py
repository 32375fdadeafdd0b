# backend/tests/conftest.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from decembrrr import models  # noqa: F401  (registers tables on Base.metadata)
from decembrrr.config import Settings
from decembrrr.db import Base, build_engine, build_session_factory
from decembrrr.deps import get_ledger_rpc
from decembrrr.main import create_app
from decembrrr.models import FundClass, Profile, Transaction
from decembrrr.schemas import DeductionRunResult, RollbackResult, StudentLookup
from decembrrr.domain.aggregation import DEDUCTION, utc_window
from decembrrr.domain.collection_calendar import ClassCalendar

WEEKDAYS = frozenset({1, 2, 3, 4, 5})


def weekday_calendar(**kw) -> ClassCalendar:
    """Mon-Fri, 10 per day, starting Monday 2024-12-02."""
    base = dict(
        daily_amount=Decimal("10"),
        collection_days=WEEKDAYS,
        date_initiated=date(2024, 12, 2),
    )
    base.update(kw)
    return ClassCalendar(**base)


class FakeLedgerRpc:
    """
    Stand-in for the remote ledger authority.

    With a session, rollback_no_class_date removes that day's deductions
    and restores balances the way the remote procedure does.
    """

    def __init__(self, db=None, *, fail: Optional[Exception] = None) -> None:
        self.db = db
        self.fail = fail
        self.calls: list[tuple] = []
        self.students: dict[int, StudentLookup] = {}

    def enabled(self) -> bool:
        return True

    def rollback_no_class_date(self, class_id: int, target_date: date) -> RollbackResult:
        self.calls.append(("rollback_no_class_date", class_id, target_date))
        if self.fail:
            raise self.fail
        n = 0
        if self.db is not None:
            lo, hi = utc_window(target_date, target_date, "UTC")
            rows = self.db.scalars(
                select(Transaction).where(
                    Transaction.class_id == class_id,
                    Transaction.type == DEDUCTION,
                    Transaction.created_at >= lo,
                    Transaction.created_at < hi,
                )
            ).all()
            for r in rows:
                member = self.db.get(Profile, r.profile_id)
                member.balance = member.balance + r.amount
                self.db.delete(r)
                n += 1
            self.db.flush()
        return RollbackResult(status="ok", rolled_back=n)

    def run_daily_deduction(self, target_date: date) -> DeductionRunResult:
        self.calls.append(("run_daily_deduction", target_date))
        if self.fail:
            raise self.fail
        return DeductionRunResult(status="ok", target_date=target_date, deducted=0)

    def lookup_student(self, student_id: int) -> StudentLookup:
        self.calls.append(("lookup_student", student_id))
        return self.students.get(student_id, StudentLookup(found=False))


@pytest.fixture()
def engine():
    eng = build_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    s = build_session_factory(engine)()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def fake_rpc():
    return FakeLedgerRpc()


@pytest.fixture()
def app(fake_rpc):
    s = Settings(_env_file=None, app_env="test", database_url="sqlite://")
    application = create_app(s, ledger_rpc=fake_rpc)
    Base.metadata.create_all(bind=application.state.engine)
    application.dependency_overrides[get_ledger_rpc] = lambda: fake_rpc
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def app_db(app):
    s = app.state.session_factory()
    try:
        yield s
    finally:
        s.close()


def make_class(
    db,
    *,
    name: str = "BSCS 2A",
    invite_code: str = "ABC123",
    daily_amount: Decimal = Decimal("10"),
    collection_days=(1, 2, 3, 4, 5),
    date_initiated: date = date(2024, 12, 2),
    fund_goal: Optional[Decimal] = None,
    timezone: Optional[str] = None,
) -> FundClass:
    row = FundClass(
        name=name,
        invite_code=invite_code,
        daily_amount=daily_amount,
        collection_days=list(collection_days),
        date_initiated=date_initiated,
        fund_goal=fund_goal,
        timezone=timezone,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_member(db, cls: FundClass, name: str, *, balance: Decimal = Decimal("0"), active: bool = True) -> Profile:
    row = Profile(class_id=cls.id, name=name, balance=balance, is_active=active)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_txn(db, cls: FundClass, member: Profile, txn_type: str, amount, created_at: datetime) -> Transaction:
    amt = Decimal(str(amount))
    before = member.balance
    after = before + amt if txn_type == "deposit" else before - amt
    row = Transaction(
        class_id=cls.id,
        profile_id=member.id,
        type=txn_type,
        amount=amt,
        balance_before=before,
        balance_after=after,
        created_at=created_at,
    )
    member.balance = after
    db.add_all([row, member])
    db.commit()
    return row
