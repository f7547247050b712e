from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from domain.models import Transaction


@dataclass(frozen=True)
class LedgerPartition:
    expenses: list[Transaction] = field(default_factory=list)
    income: list[Transaction] = field(default_factory=list)


def goal_transactions(transactions: Iterable[Transaction], goal_id: str) -> list[Transaction]:
    return [txn for txn in transactions if txn.goal_id == goal_id]


def classify(transactions: Iterable[Transaction], goal_id: str) -> LedgerPartition:
    expenses: list[Transaction] = []
    income: list[Transaction] = []
    for txn in goal_transactions(transactions, goal_id):
        if txn.is_expense:
            expenses.append(txn)
        else:
            income.append(txn)
    return LedgerPartition(expenses=expenses, income=income)
