from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by the goal ledger."""


class ValidationError(LedgerError, ValueError):
    """Rejected input. Raised before anything is written."""


class NotFoundError(LedgerError, LookupError):
    pass


class GoalNotFoundError(NotFoundError, ValidationError):
    def __init__(self, goal_id: str):
        super().__init__(f"Goal not found: {goal_id}")
        self.goal_id = goal_id


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class InvariantViolation(LedgerError, AssertionError):
    """A goal's current amount disagrees with the sum of its transactions.

    This is a programming error. It is never corrected silently.
    """
