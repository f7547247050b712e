from __future__ import annotations

import itertools
import unittest
from datetime import datetime, timezone
from decimal import Decimal

from application.engine import AllowanceEngine
from application.ledger_service import LedgerService, check_consistency
from domain.errors import (
    GoalNotFoundError,
    InvariantViolation,
    NotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from domain.models import Goal, GoalType
from infrastructure.clock import FixedClock
from infrastructure.persistence.key_value_store import InMemoryKeyValueStore
from infrastructure.persistence.ledger_repository import LedgerRepository

NOW = datetime(2026, 3, 1, 12, 0)


class LedgerServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        counter = itertools.count(1)
        self.store = InMemoryKeyValueStore()
        self.clock = FixedClock(NOW)
        self.service = LedgerService(
            repository=LedgerRepository(self.store),
            clock=self.clock,
            engine=AllowanceEngine(recent_limit=3),
            id_factory=lambda: f"id{next(counter)}",
        )
        self.goal = self.service.create_survival_goal(
            {
                "title": "March",
                "amount": "3000",
                "period_start": datetime(2026, 3, 1),
                "period_end": datetime(2026, 3, 3),
            }
        )

    def assertLedgerConsistent(self) -> None:
        check_consistency(self.service.goals(), self.service.transactions())

    def _current(self, goal_id: str | None = None) -> Decimal:
        return self.service.get_goal(goal_id or self.goal.id).current_amount

    def test_survival_goal_creation(self) -> None:
        self.assertEqual(self.goal.type, GoalType.SURVIVAL)
        self.assertEqual(self.goal.deadline, datetime(2026, 3, 3))
        self.assertEqual(self.goal.daily_allowance, Decimal("1000"))
        self.assertEqual(self.goal.created_at, NOW)
        self.assertEqual(self.goal.current_amount, Decimal("0"))

    def test_survival_goal_rejects_reversed_period(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.create_survival_goal(
                {"title": "Bad", "amount": 10, "period_start": datetime(2026, 3, 5), "period_end": datetime(2026, 3, 1)}
            )

    def test_standard_goal_uses_category_colour(self) -> None:
        goal = self.service.create_goal(
            {"title": "  Trip  ", "amount": 5000, "deadline": datetime(2026, 8, 1), "category": "travel"}
        )
        self.assertEqual(goal.title, "Trip")
        self.assertEqual(goal.category, "Travel")
        self.assertEqual(goal.color, "#3B82F6")
        self.assertEqual(goal.type, GoalType.STANDARD)

    def test_ledger_invariant_holds_after_every_step(self) -> None:
        steps = [
            lambda: self.service.record_expense(self.goal.id, 400, "groceries", NOW),
            lambda: self.service.record_income(self.goal.id, "250.50", "refund", NOW),
            lambda: self.service.record_expense(self.goal.id, Decimal("99.99"), "pharmacy", NOW),
            lambda: self.service.undo_transaction("id3"),
            lambda: self.service.record_income(self.goal.id, 5000, "salary", NOW),
            lambda: self.service.undo_transaction("id2"),
        ]
        for step in steps:
            step()
            self.assertLedgerConsistent()
        self.assertEqual(self._current(), Decimal("-4900.01"))
        self.assertEqual([t.id for t in self.service.transactions()], ["id4", "id5"])

    def test_income_is_stored_with_negative_amount(self) -> None:
        txn = self.service.record_income(self.goal.id, 300, "top-up", NOW)
        self.assertEqual(txn.amount, Decimal("-300"))
        self.assertEqual(self._current(), Decimal("-300"))
        self.assertEqual(self.store.get("transactions")[0]["amount"], "-300")

    def test_missing_transaction_date_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.record_expense(self.goal.id, 10, "tea", None)
        with self.assertRaises(ValidationError):
            self.service.record_income(self.goal.id, 10, "tea", None)
        self.assertEqual(self.service.transactions(), [])
        dated = self.service.record_expense(self.goal.id, 10, "tea", datetime(2026, 3, 2, 8, 0))
        self.assertEqual(dated.date, datetime(2026, 3, 2, 8, 0))

    def test_double_undo_fails_the_second_time(self) -> None:
        txn = self.service.record_expense(self.goal.id, 400, "groceries", NOW)
        self.service.undo_transaction(txn.id)
        with self.assertRaises(TransactionNotFoundError):
            self.service.undo_transaction(txn.id)
        self.assertEqual(self._current(), Decimal("0"))

    def test_invalid_transactions_are_rejected_without_writes(self) -> None:
        bad_inputs = [
            (0, "zero"),
            (-5, "negative"),
            ("abc", "text"),
            (float("nan"), "nan"),
            (10, "   "),
            (10, ""),
        ]
        for amount, description in bad_inputs:
            with self.subTest(amount=amount, description=description):
                with self.assertRaises(ValidationError):
                    self.service.record_expense(self.goal.id, amount, description, NOW)
                with self.assertRaises(ValidationError):
                    self.service.record_income(self.goal.id, amount, description, NOW)
        self.assertEqual(self.service.transactions(), [])
        self.assertEqual(self._current(), Decimal("0"))

    def test_unknown_goal_is_both_validation_and_not_found(self) -> None:
        with self.assertRaises(GoalNotFoundError) as ctx:
            self.service.record_expense("missing", 10, "tea", NOW)
        self.assertIsInstance(ctx.exception, ValidationError)
        self.assertIsInstance(ctx.exception, NotFoundError)

    def test_toggle_hidden_has_no_ledger_effect(self) -> None:
        self.service.record_expense(self.goal.id, 100, "lunch", NOW)
        self.assertTrue(self.service.toggle_hidden(self.goal.id).hidden)
        self.assertEqual([g.id for g in self.service.hidden_goals()], [self.goal.id])
        self.assertEqual(self.service.visible_goals(), [])
        self.assertEqual(self._current(), Decimal("100"))
        self.assertFalse(self.service.toggle_hidden(self.goal.id).hidden)

    def test_delete_goal_cascades_to_its_transactions(self) -> None:
        other = self.service.create_goal({"title": "Car", "amount": 900, "deadline": datetime(2026, 9, 1)})
        self.service.record_expense(self.goal.id, 100, "lunch", NOW)
        kept = self.service.record_expense(other.id, 50, "oil", NOW)

        self.service.delete_goal(self.goal.id)

        self.assertEqual([g.id for g in self.service.goals()], [other.id])
        self.assertEqual([t.id for t in self.service.transactions()], [kept.id])
        self.assertEqual(self._current(other.id), Decimal("50"))
        self.assertLedgerConsistent()
        with self.assertRaises(GoalNotFoundError):
            self.service.delete_goal(self.goal.id)

    def test_edit_goal_leaves_ledger_untouched(self) -> None:
        self.service.record_expense(self.goal.id, 100, "lunch", NOW)
        updated = self.service.edit_goal(self.goal.id, {"title": "April", "amount": 4000, "period_end": datetime(2026, 3, 4)})
        self.assertEqual(updated.title, "April")
        self.assertEqual(updated.amount, Decimal("4000"))
        self.assertEqual(updated.deadline, datetime(2026, 3, 4))
        self.assertEqual(updated.current_amount, Decimal("100"))

        with self.assertRaises(ValidationError):
            self.service.edit_goal(self.goal.id, {"period_start": datetime(2026, 3, 10)})
        with self.assertRaises(ValidationError):
            self.service.edit_goal(self.goal.id, {"title": " "})

    def test_goal_report_uses_live_ledger(self) -> None:
        self.service.record_expense(self.goal.id, 400, "groceries", NOW)
        report = self.service.goal_report(self.goal.id)
        self.assertEqual(report.survival.allowance.today_allowance, Decimal("600"))

        self.service.record_income(self.goal.id, 300, "gift", NOW)
        report = self.service.goal_report(self.goal.id)
        self.assertEqual(report.survival.balance.ceiling, Decimal("3300"))
        self.assertEqual(report.survival.allowance.daily_allowance, Decimal("1100"))

        report = self.service.goal_report(self.goal.id, now=datetime(2026, 3, 2, 9, 0))
        self.assertEqual(report.survival.allowance.daily_allowance, Decimal("1450"))

    def test_same_day_period_ignores_time_of_day(self) -> None:
        goal = self.service.create_survival_goal(
            {"title": "Day out", "amount": 50, "period_start": datetime(2026, 3, 5, 18), "period_end": datetime(2026, 3, 5, 9)}
        )
        self.assertEqual(goal.daily_allowance, Decimal("50"))
        edited = self.service.edit_goal(goal.id, {"period_start": datetime(2026, 3, 5, 23)})
        self.assertEqual(edited.period_start, datetime(2026, 3, 5, 23))

    def test_clear_data(self) -> None:
        self.service.record_expense(self.goal.id, 100, "lunch", NOW)
        self.service.clear_data()
        self.assertEqual(self.service.goals(), [])
        self.assertEqual(self.service.transactions(), [])


class ZoneAwareClockTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = LedgerService(
            repository=LedgerRepository(InMemoryKeyValueStore()),
            clock=FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)),
            engine=AllowanceEngine(recent_limit=3),
        )

    def test_naive_and_aware_period_bounds_are_accepted(self) -> None:
        goal = self.service.create_survival_goal(
            {"title": "March", "amount": 3000, "period_start": "2026-03-01T00:00:00", "period_end": "2026-03-03T00:00:00Z"}
        )
        self.assertEqual(goal.period_start, datetime(2026, 3, 1, tzinfo=timezone.utc))
        self.assertEqual(goal.daily_allowance, Decimal("1000"))

    def test_reversed_mixed_period_is_a_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.create_survival_goal(
                {"title": "Bad", "amount": 10, "period_start": "2026-03-05T00:00:00", "period_end": "2026-03-01T00:00:00Z"}
            )

    def test_naive_and_aware_transaction_dates_can_be_reported(self) -> None:
        goal = self.service.create_survival_goal(
            {"title": "March", "amount": 3000, "period_start": datetime(2026, 3, 1), "period_end": datetime(2026, 3, 3)}
        )
        naive = self.service.record_expense(goal.id, 10, "a", datetime(2026, 3, 1, 9))
        self.service.record_expense(goal.id, 10, "b", self.service.now())
        self.assertEqual(naive.date.tzinfo, timezone.utc)

        report = self.service.goal_report(goal.id)
        self.assertEqual([t.description for t in report.recent_transactions], ["b", "a"])
        self.assertEqual(report.survival.todays_expenses, Decimal("20"))
        self.assertEqual(len(self.service.history()), 1)

        later = self.service.goal_report(goal.id, now=datetime(2026, 3, 2, 9))
        self.assertEqual(later.survival.period.days_remaining, 2)


class ConsistencyCheckTests(unittest.TestCase):
    def test_divergent_current_amount_fails_loudly(self) -> None:
        goal = Goal(
            id="g1",
            title="Broken",
            amount=Decimal("100"),
            current_amount=Decimal("5"),
            deadline=NOW,
            created_at=NOW,
        )
        with self.assertRaises(InvariantViolation):
            check_consistency([goal], [])

    def test_corrupted_store_blocks_further_mutations(self) -> None:
        store = InMemoryKeyValueStore()
        service = LedgerService(repository=LedgerRepository(store), clock=FixedClock(NOW))
        goal = service.create_goal({"title": "Bike", "amount": 300, "deadline": datetime(2026, 6, 1)})
        rows = store.get("goals")
        rows[0]["currentAmount"] = "42"

        with self.assertRaises(InvariantViolation):
            service.record_expense(goal.id, 10, "bell", NOW)
        self.assertEqual(service.transactions(), [])


if __name__ == "__main__":
    unittest.main()
