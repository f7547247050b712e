from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from application.ledger_service import LedgerService
from domain.errors import InvariantViolation, NotFoundError, ValidationError
from domain.schemas import (
    GoalCreate,
    GoalEdit,
    GoalRecord,
    GoalReport,
    HistoryDay,
    SurvivalGoalCreate,
    TransactionInput,
    TransactionRecord,
)
from interface.cli import build_service

logger = logging.getLogger(__name__)


def create_app(service: LedgerService | None = None) -> FastAPI:
    ledger = service or build_service()
    app = FastAPI(title="Goal Ledger API")

    @app.exception_handler(NotFoundError)
    def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    def invalid(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(InvariantViolation)
    def broken_ledger(request: Request, exc: InvariantViolation) -> JSONResponse:
        logger.exception("Ledger invariant violated path=%s", request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/goals", response_model=list[GoalRecord])
    def list_goals(hidden: bool = False) -> list[GoalRecord]:
        goals = ledger.hidden_goals() if hidden else ledger.visible_goals()
        return [GoalRecord.from_model(goal) for goal in goals]

    @app.post("/goals", response_model=GoalRecord, status_code=status.HTTP_201_CREATED)
    def create_goal(payload: GoalCreate) -> GoalRecord:
        return GoalRecord.from_model(ledger.create_goal(payload))

    @app.post("/goals/survival", response_model=GoalRecord, status_code=status.HTTP_201_CREATED)
    def create_survival_goal(payload: SurvivalGoalCreate) -> GoalRecord:
        return GoalRecord.from_model(ledger.create_survival_goal(payload))

    @app.patch("/goals/{goal_id}", response_model=GoalRecord)
    def edit_goal(goal_id: str, payload: GoalEdit) -> GoalRecord:
        return GoalRecord.from_model(ledger.edit_goal(goal_id, payload))

    @app.delete("/goals/{goal_id}", response_model=GoalRecord)
    def delete_goal(goal_id: str) -> GoalRecord:
        return GoalRecord.from_model(ledger.delete_goal(goal_id))

    @app.post("/goals/{goal_id}/toggle-hidden", response_model=GoalRecord)
    def toggle_hidden(goal_id: str) -> GoalRecord:
        return GoalRecord.from_model(ledger.toggle_hidden(goal_id))

    @app.get("/goals/{goal_id}/report", response_model=GoalReport)
    def goal_report(goal_id: str, now: Optional[datetime] = None) -> GoalReport:
        return ledger.goal_report(goal_id, now=now)

    @app.post("/goals/{goal_id}/expenses", response_model=TransactionRecord, status_code=status.HTTP_201_CREATED)
    def record_expense(goal_id: str, payload: TransactionInput) -> TransactionRecord:
        txn = ledger.record_expense(goal_id, payload.amount, payload.description, payload.date or ledger.now())
        return TransactionRecord.from_model(txn)

    @app.post("/goals/{goal_id}/income", response_model=TransactionRecord, status_code=status.HTTP_201_CREATED)
    def record_income(goal_id: str, payload: TransactionInput) -> TransactionRecord:
        txn = ledger.record_income(goal_id, payload.amount, payload.description, payload.date or ledger.now())
        return TransactionRecord.from_model(txn)

    @app.delete("/transactions/{transaction_id}", response_model=TransactionRecord)
    def undo_transaction(transaction_id: str) -> TransactionRecord:
        return TransactionRecord.from_model(ledger.undo_transaction(transaction_id))

    @app.get("/transactions/history", response_model=list[HistoryDay])
    def history() -> list[HistoryDay]:
        return ledger.history()

    @app.delete("/data", status_code=status.HTTP_204_NO_CONTENT)
    def clear_data() -> None:
        ledger.clear_data()

    return app


app = create_app()
