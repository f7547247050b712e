from __future__ import annotations

from application.engine import AllowanceEngine
from application.ledger_service import LedgerService
from domain.errors import NotFoundError
from infrastructure.clock import SystemClock
from infrastructure.persistence.key_value_store import JsonFileKeyValueStore
from infrastructure.persistence.ledger_repository import LedgerRepository


def build_service() -> LedgerService:
    return LedgerService(
        repository=LedgerRepository(JsonFileKeyValueStore()),
        clock=SystemClock(),
        engine=AllowanceEngine(),
    )


def main() -> None:
    service = build_service()
    goals = service.visible_goals()
    if not goals:
        print("No goals yet. Create one through the API first.")
        return

    for goal in goals:
        print(f"{goal.id}  [{goal.type.value}]  {goal.title}")
    goal_id = input("Goal id > ").strip() or goals[0].id

    try:
        report = service.goal_report(goal_id)
    except NotFoundError as exc:
        print(exc)
        return
    print(report.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
