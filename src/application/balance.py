from __future__ import annotations

from typing import Iterable

from domain.models import ZERO, Goal, Transaction
from domain.schemas import LedgerBalance


def balance(goal: Goal, expenses: Iterable[Transaction], income: Iterable[Transaction]) -> LedgerBalance:
    # Top-ups raise the ceiling permanently; goal.amount itself is never changed by the ledger.
    ceiling = goal.amount + sum((abs(txn.amount) for txn in income), ZERO)
    spent = sum((txn.amount for txn in expenses), ZERO)
    return LedgerBalance(ceiling=ceiling, spent=spent, remaining=ceiling - spent)
