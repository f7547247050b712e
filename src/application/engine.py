from __future__ import annotations

import logging
import os
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from application.allowance import allowance
from application.balance import balance
from application.ledger_filter import classify, goal_transactions
from application.period import calendar_day, days_between, period_stats
from domain.errors import ValidationError
from domain.models import ZERO, Goal, Transaction
from domain.schemas import (
    GoalRecord,
    GoalReport,
    HistoryDay,
    HistoryEntry,
    StandardProgress,
    SurvivalReport,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    # timestamp() orders naive and zone-aware dates alike
    return sorted(transactions, key=lambda txn: txn.date.timestamp(), reverse=True)


class AllowanceEngine:
    """Stateless readouts over a goal and its ledger.

    Every figure is recomputed from the transactions passed in, using the
    single ``now`` the caller supplies.
    """

    def __init__(self, recent_limit: int | None = None):
        if recent_limit is None:
            recent_limit = int(os.getenv("GOAL_LEDGER_RECENT_LIMIT", "3"))
        self._recent_limit = recent_limit

    def survival_report(self, goal: Goal, transactions: Iterable[Transaction], now: datetime) -> SurvivalReport:
        if not goal.is_survival:
            raise ValidationError(f"Goal {goal.id} is not a survival goal")

        partition = classify(transactions, goal.id)
        period_start, period_end = goal.period_bounds()
        period = period_stats(period_start, period_end, now)
        ledger_balance = balance(goal, partition.expenses, partition.income)

        today = calendar_day(now)
        todays_expenses = sum(
            (txn.value for txn in partition.expenses if calendar_day(txn.date, now.tzinfo) == today),
            ZERO,
        )
        figures = allowance(ledger_balance.remaining, period.days_remaining, todays_expenses)
        logger.info(
            "Survival report goal_id=%s days_remaining=%d remaining=%s daily=%s",
            goal.id,
            period.days_remaining,
            ledger_balance.remaining,
            figures.daily_allowance,
        )
        return SurvivalReport(
            goal_id=goal.id,
            now=now,
            period_start=calendar_day(period_start, now.tzinfo),
            period_end=calendar_day(period_end, now.tzinfo),
            period=period,
            balance=ledger_balance,
            todays_expenses=todays_expenses,
            allowance=figures,
        )

    def standard_progress(self, goal: Goal, now: datetime) -> StandardProgress:
        progress = goal.current_amount / goal.amount if goal.amount else ZERO
        percent_complete = min(100, int((progress * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)))
        days_remaining = max(0, days_between(goal.deadline, now, now.tzinfo))
        return StandardProgress(
            goal_id=goal.id,
            progress=progress,
            percent_complete=percent_complete,
            remaining=goal.amount - goal.current_amount,
            days_remaining=days_remaining,
            is_due_today=days_remaining == 0,
            is_past_due=calendar_day(now) > calendar_day(goal.deadline, now.tzinfo)
            and goal.current_amount < goal.amount,
        )

    def recent_transactions(
        self, transactions: Iterable[Transaction], goal_id: str, limit: int | None = None
    ) -> list[Transaction]:
        return _newest_first(goal_transactions(transactions, goal_id))[: self._recent_limit if limit is None else limit]

    def goal_report(self, goal: Goal, transactions: Iterable[Transaction], now: datetime) -> GoalReport:
        transactions = list(transactions)
        recent = [TransactionRecord.from_model(txn) for txn in self.recent_transactions(transactions, goal.id)]
        if goal.is_survival:
            return GoalReport(
                goal=GoalRecord.from_model(goal),
                survival=self.survival_report(goal, transactions, now),
                recent_transactions=recent,
            )
        return GoalReport(
            goal=GoalRecord.from_model(goal),
            progress=self.standard_progress(goal, now),
            recent_transactions=recent,
        )

    def history(self, goals: Iterable[Goal], transactions: Iterable[Transaction]) -> list[HistoryDay]:
        titles = {goal.id: goal.title for goal in goals}
        days: dict[date, HistoryDay] = {}
        for txn in _newest_first(transactions):
            day = calendar_day(txn.date)
            if day not in days:
                days[day] = HistoryDay(day=day)
            days[day].entries.append(
                HistoryEntry(
                    transaction=TransactionRecord.from_model(txn),
                    goal_title=titles.get(txn.goal_id),
                    is_income=txn.is_income,
                )
            )
        return list(days.values())
