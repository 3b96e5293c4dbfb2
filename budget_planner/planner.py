"""BudgetPlanner facade.

Wires one :class:`StorageManager` into every service and turns service
errors into :class:`ActionResult` records, so callers never see an
exception escape a public operation.  Unknown or misplaced keyword
arguments are reported as validation failures.

Typical use::

    with BudgetPlanner(data_path) as planner:
        planner.add_expense(42.5, 'Food & Dining', 'Groceries')
        report = planner.monthly_report().data
"""

from __future__ import annotations

import inspect
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .analytics import AnalyticsEngine
from .budget_engine import BudgetEngine
from .exceptions import BudgetPlannerError, UnparseableInputError, ValidationError
from .goals import GoalsService
from .insights import InsightsEngine
from .models import ActionResult, Category, new_id
from .parser import parse_natural_language
from .storage import StorageManager
from .transactions import TransactionService
from .validation import category_errors, ensure_valid

logger = logging.getLogger(__name__)


def _call(function: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``function``, reporting arguments it does not accept as a ValidationError."""
    try:
        inspect.signature(function).bind(*args, **kwargs)
    except TypeError as exc:
        raise ValidationError([str(exc)]) from None
    return function(*args, **kwargs)


class BudgetPlanner:
    """Single entry point over the storage, engines and services."""

    def __init__(self, data_path: Optional[Union[str, Path]] = None):
        self.storage = StorageManager(data_path)
        self.transactions = TransactionService(self.storage)
        self.budgets = BudgetEngine(self.storage)
        self.goals = GoalsService(self.storage)
        self.analytics = AnalyticsEngine(self.storage, self.budgets, self.goals)
        self.insights = InsightsEngine(self.storage)
        self._initialized = False

    # Lifecycle ----------------------------------------------------------------

    def initialize(self) -> 'BudgetPlanner':
        self.storage.initialize()
        self._initialized = True
        logger.info("Budget planner ready at %s", self.storage.data_path)
        return self

    def close(self) -> None:
        if self._initialized:
            self.storage.close()
            self._initialized = False

    def __enter__(self) -> 'BudgetPlanner':
        return self.initialize()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def data_path(self) -> Path:
        return self.storage.data_path

    def _run(self, message: str, operation: Callable[[], Any]) -> ActionResult:
        try:
            if not self._initialized:
                raise BudgetPlannerError("Budget planner is not initialized; call initialize() first")
            data = operation()
        except ValidationError as exc:
            return ActionResult(success=False, message='Validation failed', error=str(exc), errors=list(exc.errors))
        except BudgetPlannerError as exc:
            logger.debug("Operation failed (%s): %s", type(exc).__name__, exc)
            return ActionResult(success=False, message=type(exc).__name__, error=str(exc))
        return ActionResult(success=True, message=message, data=data)

    # Transactions -------------------------------------------------------------

    def add_expense(self, amount: float, category: str, description: str, **options: Any) -> ActionResult:
        return self._run(
            'Expense added',
            lambda: _call(self.transactions.add_transaction, 'expense', amount, category, description, **options),
        )

    def add_income(self, amount: float, category: str, description: str, **options: Any) -> ActionResult:
        return self._run(
            'Income added',
            lambda: _call(self.transactions.add_transaction, 'income', amount, category, description, **options),
        )

    def add_from_natural_language(self, text: str, today: Optional[date] = None) -> ActionResult:
        """Parse ``text`` and store the resulting transaction.

        On success ``data`` is ``{'transaction': ..., 'parsed': ...}``.
        """
        def add() -> Any:
            parsed = parse_natural_language(text, today=today)
            if parsed is None:
                raise UnparseableInputError(text)
            transaction = self.transactions.add_transaction(
                parsed.type,
                parsed.amount,
                parsed.category,
                parsed.description,
                date=parsed.date,
            )
            return {'transaction': transaction, 'parsed': parsed}

        return self._run('Transaction added from text', add)

    def update_transaction(self, transaction_id: str, **updates: Any) -> ActionResult:
        return self._run(
            'Transaction updated',
            lambda: self.transactions.update_transaction(transaction_id, **updates),
        )

    def delete_transaction(self, transaction_id: str) -> ActionResult:
        return self._run('Transaction deleted', lambda: self.transactions.delete_transaction(transaction_id))

    def get_transactions(self, **filters: Any) -> ActionResult:
        return self._run('Transactions loaded', lambda: _call(self.transactions.get_transactions, **filters))

    def get_expenses(self, **filters: Any) -> ActionResult:
        filters['type'] = 'expense'
        return self._run('Expenses loaded', lambda: _call(self.transactions.get_transactions, **filters))

    def get_income(self, **filters: Any) -> ActionResult:
        filters['type'] = 'income'
        return self._run('Income loaded', lambda: _call(self.transactions.get_transactions, **filters))

    def recent_transactions(self, count: int = 10) -> ActionResult:
        return self._run('Recent transactions loaded', lambda: self.transactions.recent_transactions(count))

    def create_recurring(self, type: str, amount: float, category: str, description: str,
                         frequency: str, **options: Any) -> ActionResult:
        return self._run(
            'Recurring transaction created',
            lambda: _call(
                self.transactions.create_recurring, type, amount, category, description, frequency, **options,
            ),
        )

    def process_recurring(self, today: Optional[date] = None) -> ActionResult:
        def process() -> Any:
            return self.transactions.process_recurring(today=today)

        result = self._run('Recurring transactions processed', process)
        if result.success:
            result.message = f"Processed {len(result.data)} recurring transactions"
        return result

    def get_stats(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> ActionResult:
        return self._run('Statistics computed', lambda: self.transactions.transaction_stats(start_date, end_date))

    # Budgets ------------------------------------------------------------------

    def create_budget(self, name: str, category: str, limit: float, period: str,
                      alert_threshold: Optional[float] = None) -> ActionResult:
        return self._run(
            'Budget created',
            lambda: self.budgets.create_budget(name, category, limit, period, alert_threshold),
        )

    def update_budget(self, budget_id: str, **updates: Any) -> ActionResult:
        return self._run('Budget updated', lambda: self.budgets.update_budget(budget_id, **updates))

    def delete_budget(self, budget_id: str) -> ActionResult:
        return self._run('Budget deleted', lambda: self.budgets.delete_budget(budget_id))

    def get_budget_status(self, budget_id: Optional[str] = None, today: Optional[date] = None) -> ActionResult:
        return self._run('Budget status computed', lambda: self.budgets.get_budget_status(budget_id, today))

    def check_budget_alerts(self, today: Optional[date] = None) -> ActionResult:
        return self._run('Budget alerts checked', lambda: self.budgets.check_alerts(today))

    def suggest_budget_limits(self) -> ActionResult:
        return self._run('Budget limits suggested', self.budgets.suggest_limits)

    # Goals --------------------------------------------------------------------

    def create_goal(self, name: str, target_amount: float, **options: Any) -> ActionResult:
        return self._run('Goal created', lambda: _call(self.goals.create_goal, name, target_amount, **options))

    def update_goal(self, goal_id: str, **updates: Any) -> ActionResult:
        return self._run('Goal updated', lambda: self.goals.update_goal(goal_id, **updates))

    def delete_goal(self, goal_id: str) -> ActionResult:
        return self._run('Goal deleted', lambda: self.goals.delete_goal(goal_id))

    def contribute_to_goal(self, goal_id: str, amount: float, note: Optional[str] = None,
                           today: Optional[date] = None) -> ActionResult:
        result = self._run('Contribution added', lambda: self.goals.contribute(goal_id, amount, note, today))
        if result.success and result.data.is_completed:
            result.message = f'Goal "{result.data.name}" completed!'
        return result

    def withdraw_from_goal(self, goal_id: str, amount: float, note: Optional[str] = None,
                           today: Optional[date] = None) -> ActionResult:
        return self._run('Withdrawal recorded', lambda: self.goals.withdraw(goal_id, amount, note, today))

    def get_goals(self, **options: Any) -> ActionResult:
        return self._run('Goals loaded', lambda: _call(self.goals.get_goals, **options))

    def get_goal_progress(self, today: Optional[date] = None) -> ActionResult:
        return self._run('Goal progress computed', lambda: self.goals.all_goal_progress(today))

    def goals_summary(self) -> ActionResult:
        return self._run('Goals summary computed', self.goals.goals_summary)

    def suggest_goal_contribution(self, goal_id: str, today: Optional[date] = None) -> ActionResult:
        return self._run('Contribution suggested', lambda: self.goals.suggest_contribution(goal_id, today))

    # Analytics ----------------------------------------------------------------

    def spending_summary(self, start: Optional[date] = None, end: Optional[date] = None,
                         today: Optional[date] = None) -> ActionResult:
        return self._run('Spending summary computed', lambda: self.analytics.spending_summary(start, end, today))

    def trends(self, granularity: str = 'monthly', span: Optional[int] = None,
               today: Optional[date] = None) -> ActionResult:
        def compute() -> Any:
            try:
                return self.analytics.trends(granularity, span, today)
            except (KeyError, ValueError):
                raise ValidationError(['Granularity must be one of: daily, weekly, monthly']) from None

        return self._run('Trends computed', compute)

    def monthly_report(self, year: Optional[int] = None, month: Optional[int] = None,
                       today: Optional[date] = None) -> ActionResult:
        return self._run('Monthly report generated', lambda: self.analytics.monthly_report(year, month, today))

    def compare_to_last_month(self, today: Optional[date] = None) -> ActionResult:
        return self._run('Comparison computed', lambda: self.analytics.compare_to_last_month(today))

    # Insights -----------------------------------------------------------------

    def generate_insights(self, today: Optional[date] = None) -> ActionResult:
        return self._run('Insights generated', lambda: self.insights.generate_insights(today))

    def get_insights(self, unread_only: bool = False) -> ActionResult:
        def load() -> Any:
            return self.insights.get_unread() if unread_only else self.insights.get_insights()

        return self._run('Insights loaded', load)

    def mark_insight_read(self, insight_id: str) -> ActionResult:
        return self._run('Insight marked as read', lambda: self.insights.mark_read(insight_id))

    # Categories ---------------------------------------------------------------

    def get_categories(self) -> ActionResult:
        return self._run('Categories loaded', self.storage.get_categories)

    def create_category(self, name: str, type: str, icon: Optional[str] = None,
                        color: Optional[str] = None) -> ActionResult:
        def create() -> Any:
            ensure_valid(category_errors({'name': name, 'type': type}))
            return self.storage.add_category(Category(
                id=new_id('cat'),
                name=name.strip(),
                type=type,
                icon=icon,
                color=color,
            ))

        return self._run('Category created', create)

    def delete_category(self, category_id: str) -> ActionResult:
        return self._run('Category deleted', lambda: self.storage.delete_category(category_id))

    # Data management ----------------------------------------------------------

    def export_json(self) -> ActionResult:
        return self._run('Data exported', self.storage.export_json)

    def export_csv(self) -> ActionResult:
        return self._run('Transactions exported', self.storage.export_transactions_csv)

    def backup(self) -> ActionResult:
        return self._run('Backup created', self.storage.backup)

    def clear_all_data(self) -> ActionResult:
        return self._run('All data cleared', self.storage.clear_all_data)
