from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from domain.errors import ValidationError
from domain.models import Goal, Transaction
from domain.schemas import GoalRecord, TransactionRecord
from infrastructure.persistence.key_value_store import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

GOALS_KEY = "goals"
TRANSACTIONS_KEY = "transactions"


class LedgerRepository:
    """Loads and saves the goal and transaction collections as camelCase JSON lists."""

    def __init__(self, store: KeyValueStore | None = None):
        self._store = store or InMemoryKeyValueStore()

    def load_goals(self) -> list[Goal]:
        return [self._decode(GoalRecord, row).to_model() for row in self._rows(GOALS_KEY)]

    def load_transactions(self) -> list[Transaction]:
        return [self._decode(TransactionRecord, row).to_model() for row in self._rows(TRANSACTIONS_KEY)]

    def save(self, goals: Iterable[Goal], transactions: Iterable[Transaction]) -> None:
        self._store.put_many(
            {
                GOALS_KEY: [GoalRecord.from_model(g).model_dump(mode="json", by_alias=True) for g in goals],
                TRANSACTIONS_KEY: [
                    TransactionRecord.from_model(t).model_dump(mode="json", by_alias=True) for t in transactions
                ],
            }
        )

    def clear(self) -> None:
        self._store.clear()

    def _rows(self, key: str) -> list[Any]:
        rows = self._store.get(key)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise ValidationError(f"Stored {key!r} must be a list, got {type(rows).__name__}")
        return rows

    def _decode(self, schema: type[GoalRecord] | type[TransactionRecord], row: Any):
        try:
            return schema.model_validate(row)
        except PydanticValidationError as exc:
            logger.warning("LedgerRepository rejected stored %s: %s", schema.__name__, exc)
            raise ValidationError(f"Invalid stored {schema.__name__}: {exc}") from exc
