from __future__ import annotations

import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from application.engine import AllowanceEngine
from application.period import calendar_day, inclusive_days
from domain.errors import (
    GoalNotFoundError,
    InvariantViolation,
    TransactionNotFoundError,
    ValidationError,
)
from domain.models import (
    SURVIVAL_CATEGORY,
    ZERO,
    Goal,
    GoalType,
    Transaction,
    TransactionKind,
    find_category,
)
from domain.schemas import GoalCreate, GoalEdit, GoalReport, HistoryDay, SurvivalGoalCreate, TransactionInput
from infrastructure.clock import Clock, SystemClock
from infrastructure.persistence.ledger_repository import LedgerRepository

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _validate(schema: type[SchemaT], payload: SchemaT | dict[str, Any]) -> SchemaT:
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {schema.__name__}: {exc}") from exc


def _check_period(period_start: datetime, period_end: datetime) -> None:
    if calendar_day(period_start, period_end.tzinfo) > calendar_day(period_end, period_end.tzinfo):
        raise ValidationError("period_start must be on or before period_end")


def check_consistency(goals: Iterable[Goal], transactions: Iterable[Transaction]) -> None:
    """Raise InvariantViolation unless every goal's current amount equals its ledger sum."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        totals[txn.goal_id] += txn.amount

    goal_ids = set()
    for goal in goals:
        goal_ids.add(goal.id)
        if goal.current_amount != totals[goal.id]:
            raise InvariantViolation(
                f"Goal {goal.id} current_amount={goal.current_amount} but ledger sum={totals[goal.id]}"
            )

    orphans = sorted(goal_id for goal_id in totals if goal_id not in goal_ids)
    if orphans:
        raise InvariantViolation(f"Transactions reference missing goals: {orphans}")


class LedgerService:
    """The only writer of goals and transactions.

    Each mutation builds the next goal list and transaction list together,
    checks the ledger invariant on the result and saves both in one store
    write. Mutations are serialized by a process-wide lock.
    """

    def __init__(
        self,
        repository: LedgerRepository | None = None,
        clock: Clock | None = None,
        engine: AllowanceEngine | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._repository = repository or LedgerRepository()
        self._clock = clock or SystemClock()
        self._engine = engine or AllowanceEngine()
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._lock = threading.RLock()

    # ---- reads ----
    def now(self) -> datetime:
        return self._clock.now()

    def goals(self) -> list[Goal]:
        return self._repository.load_goals()

    def transactions(self) -> list[Transaction]:
        return self._repository.load_transactions()

    def visible_goals(self) -> list[Goal]:
        return [goal for goal in self.goals() if not goal.hidden]

    def hidden_goals(self) -> list[Goal]:
        return [goal for goal in self.goals() if goal.hidden]

    def get_goal(self, goal_id: str) -> Goal:
        return self._find_goal(self.goals(), goal_id)

    def goal_report(self, goal_id: str, now: datetime | None = None) -> GoalReport:
        goal = self.get_goal(goal_id)
        now = self._clock.now() if now is None else self._clock.localize(now)
        return self._engine.goal_report(goal, self.transactions(), now)

    def history(self) -> list[HistoryDay]:
        return self._engine.history(self.goals(), self.transactions())

    # ---- goal lifecycle ----
    def create_goal(self, payload: GoalCreate | dict[str, Any]) -> Goal:
        data = _validate(GoalCreate, payload)
        deadline = self._clock.localize(data.deadline)
        category = find_category(data.category)
        goal = Goal(
            id=self._new_id(),
            title=data.title,
            amount=data.amount,
            deadline=deadline,
            created_at=self._clock.now(),
            category=category.name,
            color=category.color,
        )
        with self._lock:
            goals, transactions = self._load()
            self._commit(goals + [goal], transactions)
        logger.info("Created goal goal_id=%s type=%s amount=%s", goal.id, goal.type.value, goal.amount)
        return goal

    def create_survival_goal(self, payload: SurvivalGoalCreate | dict[str, Any]) -> Goal:
        data = _validate(SurvivalGoalCreate, payload)
        period_start = self._clock.localize(data.period_start)
        period_end = self._clock.localize(data.period_end)
        _check_period(period_start, period_end)
        total_days = inclusive_days(period_start, period_end)
        goal = Goal(
            id=self._new_id(),
            title=data.title,
            amount=data.amount,
            deadline=period_end,
            created_at=self._clock.now(),
            category=SURVIVAL_CATEGORY.name,
            color=SURVIVAL_CATEGORY.color,
            type=GoalType.SURVIVAL,
            period_start=period_start,
            period_end=period_end,
            daily_allowance=data.amount / total_days,
        )
        with self._lock:
            goals, transactions = self._load()
            self._commit(goals + [goal], transactions)
        logger.info("Created goal goal_id=%s type=%s amount=%s days=%d", goal.id, goal.type.value, goal.amount, total_days)
        return goal

    def edit_goal(self, goal_id: str, payload: GoalEdit | dict[str, Any]) -> Goal:
        data = _validate(GoalEdit, payload)
        changes = data.model_dump(exclude_none=True)
        for field in ("deadline", "period_start", "period_end"):
            if field in changes:
                changes[field] = self._clock.localize(changes[field])
        with self._lock:
            goals, transactions = self._load()
            goal = self._find_goal(goals, goal_id)
            if not goal.is_survival and ("period_start" in changes or "period_end" in changes):
                raise ValidationError("Only survival goals have a period")
            if goal.is_survival and "period_end" in changes and "deadline" not in changes:
                changes["deadline"] = changes["period_end"]
            updated = replace(goal, **changes)
            if updated.is_survival:
                _check_period(*updated.period_bounds())
            self._commit(self._swap(goals, updated), transactions)
        logger.info("Edited goal goal_id=%s fields=%s", goal_id, sorted(changes))
        return updated

    def toggle_hidden(self, goal_id: str) -> Goal:
        with self._lock:
            goals, transactions = self._load()
            goal = self._find_goal(goals, goal_id)
            updated = replace(goal, hidden=not goal.hidden)
            self._commit(self._swap(goals, updated), transactions)
        logger.info("Toggled goal goal_id=%s hidden=%s", goal_id, updated.hidden)
        return updated

    def delete_goal(self, goal_id: str) -> Goal:
        with self._lock:
            goals, transactions = self._load()
            goal = self._find_goal(goals, goal_id)
            remaining = [txn for txn in transactions if txn.goal_id != goal_id]
            self._commit([g for g in goals if g.id != goal_id], remaining)
        logger.info("Deleted goal goal_id=%s cascaded_transactions=%d", goal_id, len(transactions) - len(remaining))
        return goal

    def clear_data(self) -> None:
        with self._lock:
            self._repository.clear()
        logger.info("Cleared all goals and transactions")

    # ---- ledger mutations ----
    def record_expense(
        self, goal_id: str, amount: Any, description: str, date: datetime | None
    ) -> Transaction:
        return self._record(goal_id, TransactionKind.EXPENSE, amount, description, date)

    def record_income(
        self, goal_id: str, amount: Any, description: str, date: datetime | None
    ) -> Transaction:
        return self._record(goal_id, TransactionKind.INCOME, amount, description, date)

    def undo_transaction(self, transaction_id: str) -> Transaction:
        with self._lock:
            goals, transactions = self._load()
            txn = next((t for t in transactions if t.id == transaction_id), None)
            if txn is None:
                raise TransactionNotFoundError(transaction_id)
            goal = self._find_goal(goals, txn.goal_id)
            updated = replace(goal, current_amount=goal.current_amount - txn.amount)
            self._commit(self._swap(goals, updated), [t for t in transactions if t.id != transaction_id])
        logger.info("Undid transaction txn_id=%s goal_id=%s amount=%s", txn.id, txn.goal_id, txn.amount)
        return txn

    def _record(
        self, goal_id: str, kind: TransactionKind, amount: Any, description: str, date: datetime | None
    ) -> Transaction:
        try:
            data = _validate(TransactionInput, {"amount": amount, "description": description, "date": date})
        except ValidationError:
            logger.warning("Rejected %s goal_id=%s amount=%r", kind.value, goal_id, amount)
            raise
        if not goal_id:
            raise ValidationError("goal_id is required")
        if data.date is None:
            raise ValidationError("date is required")
        date = self._clock.localize(data.date)

        with self._lock:
            goals, transactions = self._load()
            goal = self._find_goal(goals, goal_id)
            txn = Transaction(
                id=self._new_id(),
                goal_id=goal.id,
                kind=kind,
                value=data.amount,
                description=data.description,
                date=date,
            )
            updated = replace(goal, current_amount=goal.current_amount + txn.amount)
            self._commit(self._swap(goals, updated), transactions + [txn])
        logger.info("Recorded %s txn_id=%s goal_id=%s amount=%s", kind.value, txn.id, goal_id, txn.amount)
        return txn

    # ---- helpers ----
    def _load(self) -> tuple[list[Goal], list[Transaction]]:
        return self._repository.load_goals(), self._repository.load_transactions()

    def _commit(self, goals: list[Goal], transactions: list[Transaction]) -> None:
        check_consistency(goals, transactions)
        self._repository.save(goals, transactions)

    @staticmethod
    def _find_goal(goals: Iterable[Goal], goal_id: str) -> Goal:
        for goal in goals:
            if goal.id == goal_id:
                return goal
        raise GoalNotFoundError(goal_id)

    @staticmethod
    def _swap(goals: list[Goal], updated: Goal) -> list[Goal]:
        return [updated if goal.id == updated.id else goal for goal in goals]
