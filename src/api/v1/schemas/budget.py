"""Pydantic schemas for budget monitoring API."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from domain.entities.budget import Budget, BudgetPeriod, BudgetSnapshot, BudgetStatus, Expense
from domain.entities.notification import utcnow


class BudgetSchema(BaseModel):
    """Spending limit for one category."""

    id: str | None = Field(None, description="Stable id; generated when omitted")
    category: str = Field(..., min_length=1, max_length=100)
    limit: float = Field(..., gt=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY

    def to_entity(self, user_id: str) -> Budget:
        return Budget(
            id=self.id or uuid4().hex,
            user_id=user_id,
            category=self.category,
            limit=self.limit,
            period=self.period,
        )


class ExpenseRequest(BaseModel):
    """Expense recorded against the user's budgets."""

    amount: float = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=100)
    created_at: datetime | None = None

    def to_entity(self, user_id: str) -> Expense:
        return Expense(
            user_id=user_id,
            amount=self.amount,
            category=self.category,
            created_at=self.created_at or utcnow(),
        )


class BudgetStatusResponse(BaseModel):
    budget_id: str
    category: str
    period: BudgetPeriod
    limit: float
    spent: float
    percentage: float
    status: BudgetStatus

    @classmethod
    def from_entity(cls, budget: Budget, snapshot: BudgetSnapshot) -> "BudgetStatusResponse":
        return cls(
            budget_id=budget.id,
            category=budget.category,
            period=budget.period,
            limit=snapshot.limit,
            spent=snapshot.spent,
            percentage=round(snapshot.percentage, 2),
            status=snapshot.status,
        )


class BudgetListResponse(BaseModel):
    data: list[BudgetStatusResponse]
