from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


class GoalType(str, Enum):
    STANDARD = "standard"
    SURVIVAL = "survival"


class TransactionKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Travel", color="#3B82F6"),
    Category(id="2", name="Education", color="#10B981"),
    Category(id="3", name="Tech", color="#F59E0B"),
    Category(id="4", name="Home", color="#8B5CF6"),
    Category(id="5", name="Car", color="#EC4899"),
    Category(id="6", name="Health", color="#14B8A6"),
    Category(id="7", name="Other", color="#6B7280"),
)

SURVIVAL_CATEGORY = Category(id="survival", name="Survival", color="#FF4500")


def find_category(name: str) -> Category:
    for category in DEFAULT_CATEGORIES:
        if category.name.lower() == name.strip().lower():
            return category
    return DEFAULT_CATEGORIES[-1]


@dataclass
class Goal:
    id: str
    title: str
    amount: Decimal
    deadline: datetime
    created_at: datetime
    current_amount: Decimal = ZERO
    category: str = "Other"
    color: str = "#6B7280"
    hidden: bool = False
    type: GoalType = GoalType.STANDARD
    period_start: datetime | None = None
    period_end: datetime | None = None
    # Even split at creation time. Informational only: top-ups change the real figure.
    daily_allowance: Decimal | None = None

    @property
    def is_survival(self) -> bool:
        return self.type == GoalType.SURVIVAL

    def period_bounds(self) -> tuple[datetime, datetime]:
        return self.period_start or self.created_at, self.period_end or self.deadline


@dataclass(frozen=True)
class Transaction:
    """A ledger entry.

    The kind and a strictly positive ``value`` are stored; ``amount`` is the
    signed delta applied to the goal (expenses add, income subtracts).
    """

    id: str
    goal_id: str
    kind: TransactionKind
    value: Decimal
    description: str
    date: datetime

    @property
    def amount(self) -> Decimal:
        return self.value if self.kind == TransactionKind.EXPENSE else -self.value

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionKind.INCOME

    @classmethod
    def from_amount(cls, id: str, goal_id: str, amount: Decimal, description: str, date: datetime) -> "Transaction":
        if amount == 0:
            raise ValueError("transaction amount must be non-zero")
        kind = TransactionKind.EXPENSE if amount > 0 else TransactionKind.INCOME
        return cls(id=id, goal_id=goal_id, kind=kind, value=abs(amount), description=description, date=date)
