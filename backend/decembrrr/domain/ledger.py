# backend/decembrrr/domain/ledger.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..errors import InvalidAmount, InvalidArgument
from .aggregation import DEDUCTION, DEPOSIT

ENTRY_TYPES = frozenset({DEPOSIT, DEDUCTION})
CENT = Decimal("0.01")


@dataclass(frozen=True)
class BalanceTransition:
    entry_type: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal


def to_money(x: Any) -> Decimal:
    return Decimal(str(x)).quantize(CENT)


def apply_entry(balance_before: Any, entry_type: str, amount: Any) -> BalanceTransition:
    """
    balance_after = balance_before + amount for a deposit, - amount for a deduction.
    Amounts are always positive; the sign comes from the entry type.
    """
    t = (entry_type or "").strip().lower()
    if t not in ENTRY_TYPES:
        raise InvalidArgument(f"unknown ledger entry type {entry_type!r}")

    amt = to_money(amount)
    if amt <= 0:
        raise InvalidAmount(f"amount must be > 0, got {amount}")

    before = to_money(balance_before)
    after = before + amt if t == DEPOSIT else before - amt
    return BalanceTransition(entry_type=t, amount=amt, balance_before=before, balance_after=after)


def replay_balance(entries: list[Any], opening: Any = 0) -> Decimal:
    """Running balance from signed ledger entries, oldest first."""
    bal = to_money(opening)
    for e in entries:
        t = e["type"] if isinstance(e, dict) else e.type
        amt = e["amount"] if isinstance(e, dict) else e.amount
        bal = apply_entry(bal, t, amt).balance_after
    return bal
