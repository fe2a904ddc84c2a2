"""Budget monitoring API routes."""

from fastapi import APIRouter, Depends, status

from api.v1.dependencies import get_budget_monitor
from api.v1.schemas.budget import (
    BudgetListResponse,
    BudgetSchema,
    BudgetStatusResponse,
    ExpenseRequest,
)
from api.v1.schemas.common import ErrorResponse
from core.exceptions import BudgetNotFoundError, InvalidBudgetError
from domain.services.budget_monitor import BudgetMonitor

router = APIRouter(prefix="/users/{user_id}/budgets", tags=["budgets"])


def _statuses(monitor: BudgetMonitor, user_id: str) -> BudgetListResponse:
    data = []
    for budget in monitor.get_budgets(user_id):
        snapshot = monitor.get_budget_status(user_id, budget.category)
        if snapshot is not None:
            data.append(BudgetStatusResponse.from_entity(budget, snapshot))
    return BudgetListResponse(data=data)


@router.get(
    "",
    response_model=BudgetListResponse,
    summary="List budgets with current spending",
)
async def list_budgets(
    user_id: str,
    monitor: BudgetMonitor = Depends(get_budget_monitor),
) -> BudgetListResponse:
    return _statuses(monitor, user_id)


@router.put(
    "",
    response_model=BudgetListResponse,
    summary="Replace the user's budgets",
    responses={
        200: {"description": "Budgets stored; thresholds already crossed raise alerts"},
        400: {"model": ErrorResponse, "description": "Two budgets share a category"},
    },
)
async def replace_budgets(
    user_id: str,
    body: list[BudgetSchema],
    monitor: BudgetMonitor = Depends(get_budget_monitor),
) -> BudgetListResponse:
    categories = [b.category for b in body]
    duplicates = sorted({c for c in categories if categories.count(c) > 1})
    if duplicates:
        raise InvalidBudgetError(
            "Each category can have only one budget", details={"categories": duplicates}
        )

    await monitor.replace_user_budgets(user_id, [b.to_entity(user_id) for b in body])
    return _statuses(monitor, user_id)


@router.post(
    "/expenses",
    response_model=BudgetStatusResponse | None,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
    responses={
        201: {"description": "Budget status for the expense category, or null without a budget"},
    },
)
async def add_expense(
    user_id: str,
    body: ExpenseRequest,
    monitor: BudgetMonitor = Depends(get_budget_monitor),
) -> BudgetStatusResponse | None:
    """Record an expense and raise a budget alert when it crosses 90% or 100%."""
    expense = body.to_entity(user_id)
    await monitor.add_expense(expense)

    budget = next((b for b in monitor.get_budgets(user_id) if b.category == expense.category), None)
    snapshot = monitor.get_budget_status(user_id, expense.category)
    if budget is None or snapshot is None:
        return None
    return BudgetStatusResponse.from_entity(budget, snapshot)


@router.post(
    "/{budget_id}/reset-alerts",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Re-arm threshold alerts for a budget",
    responses={
        404: {"model": ErrorResponse, "description": "Budget not found"},
    },
)
async def reset_budget_alerts(
    user_id: str,
    budget_id: str,
    monitor: BudgetMonitor = Depends(get_budget_monitor),
) -> None:
    if not any(b.id == budget_id for b in monitor.get_budgets(user_id)):
        raise BudgetNotFoundError(budget_id)
    monitor.reset_alerts(budget_id)
