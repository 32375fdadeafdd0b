# backend/decembrrr/models.py
from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

MONEY = Numeric(12, 2, asdecimal=True)


def _utcnow() -> datetime:
    return datetime.utcnow()


# -----------------------------
# Class configuration
# -----------------------------
class FundClass(Base):
    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(12), nullable=False, unique=True, index=True)

    daily_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("10.00"))
    collection_frequency: Mapped[str] = mapped_column(String(10), nullable=False, default="daily")  # daily|weekly
    collection_days: Mapped[list] = mapped_column(JSON, nullable=False, default=lambda: [1, 2, 3, 4, 5])
    date_initiated: Mapped[date] = mapped_column(Date, nullable=False)
    fund_goal: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    president_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    members: Mapped[List["Profile"]] = relationship(back_populates="fund_class")
    no_class_dates: Mapped[List["NoClassDate"]] = relationship(
        back_populates="fund_class", cascade="all, delete-orphan", passive_deletes=True
    )


# -----------------------------
# Members
# -----------------------------
class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    class_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")  # student|president
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    fund_class: Mapped[Optional["FundClass"]] = relationship(back_populates="members")


# -----------------------------
# Ledger (append-only)
# -----------------------------
class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_class_type_created", "class_id", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # no FK to classes: ledger history outlives a deleted class
    class_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    profile_id: Mapped[int] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    type: Mapped[str] = mapped_column(String(12), nullable=False)  # deposit|deduction
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    balance_before: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    profile: Mapped["Profile"] = relationship()


# -----------------------------
# No-class exceptions
# -----------------------------
class NoClassDate(Base):
    __tablename__ = "no_class_dates"
    __table_args__ = (UniqueConstraint("class_id", "date", name="uq_no_class_dates_class_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    class_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="No class")
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    fund_class: Mapped["FundClass"] = relationship(back_populates="no_class_dates")
