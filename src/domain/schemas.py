from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from domain.models import Goal, GoalType, Transaction


class CamelModel(BaseModel):
    """Stored records use the camelCase keys of the key-value payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip_required(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


# ---- stored records ----

class GoalRecord(CamelModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    current_amount: Decimal = Decimal("0")
    deadline: datetime
    created_at: datetime
    category: str = "Other"
    color: str = "#6B7280"
    hidden: bool = False
    type: GoalType = GoalType.STANDARD
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    daily_allowance: Optional[Decimal] = None

    @classmethod
    def from_model(cls, goal: Goal) -> "GoalRecord":
        return cls(
            id=goal.id,
            title=goal.title,
            amount=goal.amount,
            current_amount=goal.current_amount,
            deadline=goal.deadline,
            created_at=goal.created_at,
            category=goal.category,
            color=goal.color,
            hidden=goal.hidden,
            type=goal.type,
            period_start=goal.period_start,
            period_end=goal.period_end,
            daily_allowance=goal.daily_allowance,
        )

    def to_model(self) -> Goal:
        return Goal(
            id=self.id,
            title=self.title,
            amount=self.amount,
            current_amount=self.current_amount,
            deadline=self.deadline,
            created_at=self.created_at,
            category=self.category,
            color=self.color,
            hidden=self.hidden,
            type=self.type,
            period_start=self.period_start,
            period_end=self.period_end,
            daily_allowance=self.daily_allowance,
        )


class TransactionRecord(CamelModel):
    """Wire form of a transaction: a signed amount, income negative."""

    id: str = Field(min_length=1)
    goal_id: str = Field(min_length=1)
    amount: Decimal
    description: str = Field(min_length=1)
    date: datetime

    @field_validator("amount")
    @classmethod
    def non_zero(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("amount must be non-zero")
        return value

    @classmethod
    def from_model(cls, txn: Transaction) -> "TransactionRecord":
        return cls(id=txn.id, goal_id=txn.goal_id, amount=txn.amount, description=txn.description, date=txn.date)

    def to_model(self) -> Transaction:
        return Transaction.from_amount(
            id=self.id,
            goal_id=self.goal_id,
            amount=self.amount,
            description=self.description,
            date=self.date,
        )


# ---- inputs ----

class GoalCreate(CamelModel):
    title: str
    amount: Decimal = Field(gt=0)
    deadline: datetime
    category: str = "Other"

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _strip_required(value)


class SurvivalGoalCreate(CamelModel):
    title: str
    amount: Decimal = Field(gt=0, description="Budget available for the whole period.")
    period_start: datetime
    period_end: datetime

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _strip_required(value)

    @model_validator(mode="after")
    def validate_order(self) -> "SurvivalGoalCreate":
        if self.period_start.date() > self.period_end.date():
            raise ValueError("period_start must be on or before period_end")
        return self


class GoalEdit(CamelModel):
    title: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    deadline: Optional[datetime] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _strip_required(value)


class TransactionInput(CamelModel):
    amount: Decimal = Field(gt=0)
    description: str
    date: Optional[datetime] = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        return _strip_required(value)


# ---- readouts ----

class PeriodStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_days: int
    days_elapsed: int
    days_remaining: int


class LedgerBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    ceiling: Decimal
    spent: Decimal
    remaining: Decimal


class Allowance(BaseModel):
    model_config = ConfigDict(frozen=True)

    daily_allowance: Decimal
    today_allowance: Decimal
    tomorrow_allowance: Decimal
    is_over_budget: bool
    is_today_depleted: bool


class SurvivalReport(BaseModel):
    goal_id: str
    now: datetime
    period_start: date
    period_end: date
    period: PeriodStats
    balance: LedgerBalance
    todays_expenses: Decimal
    allowance: Allowance


class StandardProgress(BaseModel):
    goal_id: str
    progress: Decimal
    percent_complete: int
    remaining: Decimal
    days_remaining: int
    is_due_today: bool
    is_past_due: bool


class GoalReport(BaseModel):
    goal: GoalRecord
    survival: Optional[SurvivalReport] = None
    progress: Optional[StandardProgress] = None
    recent_transactions: list[TransactionRecord] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    transaction: TransactionRecord
    goal_title: Optional[str] = None
    is_income: bool


class HistoryDay(BaseModel):
    day: date
    entries: list[HistoryEntry] = Field(default_factory=list)
