"""Budget monitor: raises budget alerts when spending crosses a threshold."""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

import structlog

from domain.entities.budget import Budget, BudgetPeriod, BudgetSnapshot, BudgetStatus, Expense
from domain.entities.notification import utcnow
from domain.services.notification_triggers import NotificationTriggers

logger = structlog.get_logger()

WARNING_THRESHOLD = 90
EXCEEDED_THRESHOLD = 100


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def in_period(expense_date: datetime, period: BudgetPeriod, now: datetime) -> bool:
    """Whether an expense counts toward a budget period ending at ``now``.

    DAILY is the current calendar day, WEEKLY the trailing seven days and
    MONTHLY the current calendar month.
    """
    expense_date, now = _as_utc(expense_date), _as_utc(now)
    match period:
        case BudgetPeriod.DAILY:
            return expense_date.date() == now.date()
        case BudgetPeriod.WEEKLY:
            return expense_date >= now - timedelta(days=7)
        case BudgetPeriod.MONTHLY:
            return (expense_date.year, expense_date.month) == (now.year, now.month)
    return False


class BudgetMonitor:
    """Tracks spending per user and category and alerts once per threshold per budget.

    An alert is raised the first time a budget reaches 90% and again the
    first time it reaches 100%. Alerts stay latched until ``reset_alerts``
    (typically when the budget period rolls over).
    """

    def __init__(
        self,
        triggers: NotificationTriggers,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._triggers = triggers
        self._clock = clock
        self._budgets: list[Budget] = []
        self._expenses: list[Expense] = []
        self._alerted: set[tuple[str, int]] = set()

    async def set_budgets(self, budgets: Iterable[Budget]) -> None:
        self._budgets = list(budgets)
        await self._check_all()

    async def replace_user_budgets(self, user_id: str, budgets: Iterable[Budget]) -> None:
        """Swap one user's budgets, leaving everyone else's untouched."""
        budgets = list(budgets)
        kept_ids = {b.id for b in budgets}
        for budget in self.get_budgets(user_id):
            if budget.id not in kept_ids:
                self.reset_alerts(budget.id)
        self._budgets = [b for b in self._budgets if b.user_id != user_id] + budgets
        await self._check_all(user_id)

    async def set_expenses(self, expenses: Iterable[Expense]) -> None:
        self._expenses = list(expenses)
        await self._check_all()

    async def add_expense(self, expense: Expense) -> None:
        self._expenses.append(expense)
        self._prune_expenses()
        await self._check(expense.user_id, expense.category)

    def get_budgets(self, user_id: str) -> list[Budget]:
        return [b for b in self._budgets if b.user_id == user_id]

    def reset_alerts(self, budget_id: str) -> None:
        self._alerted.discard((budget_id, WARNING_THRESHOLD))
        self._alerted.discard((budget_id, EXCEEDED_THRESHOLD))

    def reset_all_alerts(self) -> None:
        self._alerted.clear()

    def get_budget_status(self, user_id: str, category: str) -> BudgetSnapshot | None:
        budget = self._find_budget(user_id, category)
        if budget is None:
            return None

        spent = self._spent(budget)
        percentage = self._percentage(spent, budget.limit)
        if percentage >= EXCEEDED_THRESHOLD:
            status = BudgetStatus.EXCEEDED
        elif percentage >= WARNING_THRESHOLD:
            status = BudgetStatus.WARNING
        else:
            status = BudgetStatus.OK
        return BudgetSnapshot(spent=spent, limit=budget.limit, percentage=percentage, status=status)

    # --- Internals ---

    async def _check_all(self, user_id: str | None = None) -> None:
        for budget in list(self._budgets):
            if user_id is None or budget.user_id == user_id:
                await self._check(budget.user_id, budget.category)

    async def _check(self, user_id: str, category: str) -> None:
        budget = self._find_budget(user_id, category)
        if budget is None:
            return

        spent = self._spent(budget)
        percentage = self._percentage(spent, budget.limit)

        if percentage >= EXCEEDED_THRESHOLD:
            threshold = EXCEEDED_THRESHOLD
        elif percentage >= WARNING_THRESHOLD:
            threshold = WARNING_THRESHOLD
        else:
            return

        key = (budget.id, threshold)
        if key in self._alerted:
            return
        self._alerted.add(key)

        logger.info(
            "budget_threshold_reached",
            budget_id=budget.id,
            user_id=budget.user_id,
            category=budget.category,
            threshold=threshold,
            percentage=round(percentage, 2),
        )
        await self._triggers.budget_alert(budget.user_id, budget.category, spent, budget.limit)

    def _find_budget(self, user_id: str, category: str) -> Budget | None:
        return next(
            (b for b in self._budgets if b.user_id == user_id and b.category == category), None
        )

    def _spent(self, budget: Budget) -> float:
        now = self._clock()
        return sum(
            expense.amount
            for expense in self._expenses
            if expense.user_id == budget.user_id
            and expense.category == budget.category
            and in_period(expense.created_at, budget.period, now)
        )

    def _prune_expenses(self) -> None:
        # Older than both the month start and the trailing week: no period counts it again.
        now = _as_utc(self._clock())
        cutoff = min(
            now.replace(day=1, hour=0, minute=0, second=0, microsecond=0),
            now - timedelta(days=7),
        )
        self._expenses = [e for e in self._expenses if _as_utc(e.created_at) >= cutoff]

    @staticmethod
    def _percentage(spent: float, limit: float) -> float:
        if limit <= 0:
            return float(EXCEEDED_THRESHOLD) if spent > 0 else 0.0
        return spent / limit * 100
