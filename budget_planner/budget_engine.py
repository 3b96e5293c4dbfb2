"""Budget engine - period windows, spending status and alerts.

``spent`` is never stored on a budget: every status call sums the expense
ledger over the budget's *current* period window, so the figure cannot
drift from the transactions it describes.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from .config import DEFAULT_ALERT_THRESHOLD
from .exceptions import NotFoundError
from .ledger import expense_rows, filter_by_date_range, month_range, transactions_frame, week_start
from .models import (
    Budget,
    BudgetAlert,
    BudgetStatus,
    BudgetSuggestion,
    Transaction,
    new_id,
    parse_date,
)
from .storage import StorageManager
from .validation import budget_errors, ensure_valid

logger = logging.getLogger(__name__)

SUGGESTION_BUFFER = 1.2


def period_window(period: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Return the inclusive ``(start, end)`` window of ``period`` containing ``today``.

    Weeks run Sunday through Saturday.
    """
    today = today or date.today()
    if period == 'daily':
        return today, today
    if period == 'weekly':
        start = week_start(today)
        return start, start + timedelta(days=6)
    if period == 'monthly':
        return month_range(today.year, today.month)
    if period == 'yearly':
        return date(today.year, 1, 1), date(today.year, 12, 31)
    raise ValueError(f"Unknown budget period: {period}")


def calculate_spent(budget: Budget, transactions: Iterable[Transaction], today: Optional[date] = None) -> float:
    start, end = period_window(budget.period, today)
    frame = filter_by_date_range(expense_rows(transactions_frame(transactions)), start, end)
    in_category = frame['category'].str.lower() == budget.category.lower()
    return float(frame.loc[in_category, 'amount'].sum())


def classify(budget: Budget, spent: float) -> BudgetStatus:
    percentage_used = (spent / budget.limit * 100) if budget.limit > 0 else 0.0

    status = 'under'
    if percentage_used >= 100:
        status = 'exceeded'
    elif percentage_used >= budget.alert_threshold * 100:
        status = 'warning'

    return BudgetStatus(
        budget_id=budget.id,
        budget_name=budget.name,
        category=budget.category,
        limit=budget.limit,
        spent=spent,
        remaining=max(0.0, budget.limit - spent),
        percentage_used=percentage_used,
        status=status,
    )


def alert_message(budget: Budget, status: BudgetStatus) -> str:
    if status.status == 'exceeded':
        overage = status.spent - budget.limit
        return (
            f'EXCEEDED: "{budget.name}" budget exceeded by '
            f'{status.percentage_used - 100:.1f}% ({overage:.2f} over the {budget.limit:.2f} limit)'
        )
    return (
        f'WARNING: "{budget.name}" budget at {status.percentage_used:.1f}% '
        f'({budget.alert_threshold * 100:g}% threshold)'
    )


class BudgetEngine:
    """Budget CRUD plus status, alert and suggestion calculations."""

    def __init__(self, storage: StorageManager):
        self.storage = storage

    # CRUD -------------------------------------------------------------------

    def create_budget(
        self,
        name: str,
        category: str,
        limit: float,
        period: str,
        alert_threshold: Optional[float] = None,
        today: Optional[date] = None,
    ) -> Budget:
        threshold = DEFAULT_ALERT_THRESHOLD if alert_threshold is None else alert_threshold
        ensure_valid(budget_errors({
            'name': name,
            'category': category,
            'limit': limit,
            'period': period,
            'alert_threshold': threshold,
        }))
        budget = Budget(
            id=new_id('budget'),
            name=name.strip(),
            category=category.strip(),
            limit=float(limit),
            period=period,
            alert_threshold=float(threshold),
            start_date=today or date.today(),
        )
        self.storage.add_budget(budget)
        logger.info("Created budget %s for %s", budget.id, budget.category)
        return budget

    def update_budget(self, budget_id: str, **updates: Any) -> Budget:
        if self.storage.get_budget(budget_id) is None:
            raise NotFoundError('budget', budget_id)
        ensure_valid(budget_errors(updates, partial=True))
        for key in ('start_date', 'end_date'):
            if updates.get(key) is not None:
                updates[key] = parse_date(updates[key])
        return self.storage.update_budget(budget_id, updates)

    def delete_budget(self, budget_id: str) -> None:
        self.storage.delete_budget(budget_id)

    def get_budgets(self, active_only: bool = False) -> List[Budget]:
        budgets = self.storage.get_budgets()
        if active_only:
            budgets = [b for b in budgets if b.is_active]
        return budgets

    # Status -----------------------------------------------------------------

    def budget_status(self, budget: Budget, today: Optional[date] = None) -> BudgetStatus:
        spent = calculate_spent(budget, self.storage.get_transactions(), today)
        return classify(budget, spent)

    def get_budget_status(self, budget_id: Optional[str] = None, today: Optional[date] = None) -> List[BudgetStatus]:
        """Status of one budget by id, or of every active budget."""
        if budget_id is not None:
            budget = self.storage.get_budget(budget_id)
            if budget is None:
                raise NotFoundError('budget', budget_id)
            budgets = [budget]
        else:
            budgets = self.get_budgets(active_only=True)
        return [self.budget_status(b, today) for b in budgets]

    def check_alerts(self, today: Optional[date] = None) -> List[BudgetAlert]:
        alerts: List[BudgetAlert] = []
        for budget in self.get_budgets(active_only=True):
            status = self.budget_status(budget, today)
            if status.status in ('warning', 'exceeded'):
                alerts.append(BudgetAlert(budget=budget, status=status, message=alert_message(budget, status)))
        return alerts

    # Suggestions --------------------------------------------------------------

    def suggest_limits(self) -> List[BudgetSuggestion]:
        """Suggest a limit per expense category from the whole ledger.

        ``suggested = ceil(average * 1.2)``; no per-period normalization.
        """
        expenses = expense_rows(transactions_frame(self.storage.get_transactions()))
        if expenses.empty:
            return []

        stats = expenses.groupby('category', sort=False)['amount'].agg(['sum', 'count', 'max'])
        suggestions: List[BudgetSuggestion] = []
        for category, row in stats.iterrows():
            average = float(row['sum']) / int(row['count'])
            suggestions.append(BudgetSuggestion(
                category=str(category),
                # rounding first keeps 100 * 1.2 from ceiling to 121
                suggested=int(math.ceil(round(average * SUGGESTION_BUFFER, 6))),
                average=average,
                max=float(row['max']),
            ))
        return suggestions
