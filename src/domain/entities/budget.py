"""Budget and expense inputs for budget threshold monitoring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import uuid4


class BudgetPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class BudgetStatus(StrEnum):
    OK = "ok"
    WARNING = "warning"
    EXCEEDED = "exceeded"


@dataclass
class Budget:
    user_id: str
    category: str
    limit: float
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    id: str = field(default_factory=lambda: uuid4().hex)


@dataclass
class Expense:
    user_id: str
    amount: float
    category: str
    created_at: datetime
    id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Read-only value object: spending against one budget."""

    spent: float
    limit: float
    percentage: float
    status: BudgetStatus
