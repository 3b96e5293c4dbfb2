"""Spending analytics over the transaction ledger.

All figures are recomputed from the full ledger with pandas on each call:
period summaries with per-category breakdowns, zero-filled trend series,
monthly reports and month-over-month comparisons.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

import pandas as pd

from .budget_engine import BudgetEngine
from .goals import GoalsService
from .ledger import (
    expense_rows,
    filter_by_date_range,
    income_rows,
    month_range,
    previous_month,
    transactions_frame,
    week_start,
)
from .models import (
    CategoryChange,
    CategoryTotal,
    MonthComparison,
    MonthlyReport,
    SpendingSummary,
    TrendData,
)
from .storage import StorageManager

logger = logging.getLogger(__name__)

DEFAULT_TREND_SPANS: Dict[str, int] = {
    'daily': 30,
    'weekly': 12,
    'monthly': 12,
}
TOP_CHANGES = 3


def category_totals(frame: pd.DataFrame) -> List[CategoryTotal]:
    """Per-category totals sorted by total descending, ties in first-seen order."""
    if frame.empty:
        return []
    grand_total = float(frame['amount'].sum())
    grouped = frame.groupby('category', sort=False)['amount'].agg(['sum', 'count'])
    grouped = grouped.sort_values('sum', ascending=False, kind='stable')
    return [
        CategoryTotal(
            category=str(category),
            total=float(row['sum']),
            count=int(row['count']),
            percentage=float(row['sum']) / grand_total * 100 if grand_total > 0 else 0.0,
        )
        for category, row in grouped.iterrows()
    ]


def _bucket_index(granularity: str, span: int, today: date):
    if granularity == 'daily':
        return pd.date_range(end=pd.Timestamp(today), periods=span, freq='D')
    if granularity == 'weekly':
        return pd.date_range(end=pd.Timestamp(week_start(today)), periods=span, freq='7D')
    if granularity == 'monthly':
        return pd.period_range(end=pd.Period(pd.Timestamp(today), freq='M'), periods=span, freq='M')
    raise ValueError(f"Unknown trend granularity: {granularity}")


def _bucket_keys(frame: pd.DataFrame, granularity: str) -> pd.Series:
    dates = frame['date'].dt.normalize()
    if granularity == 'daily':
        return dates
    if granularity == 'weekly':
        return dates - pd.to_timedelta((dates.dt.weekday + 1) % 7, unit='D')
    return dates.dt.to_period('M')


class AnalyticsEngine:
    def __init__(self, storage: StorageManager, budget_engine: BudgetEngine, goals: GoalsService):
        self.storage = storage
        self.budget_engine = budget_engine
        self.goals = goals

    def _frame(self) -> pd.DataFrame:
        return transactions_frame(self.storage.get_transactions())

    # Summaries ----------------------------------------------------------------

    def spending_summary(self, start: Optional[date] = None, end: Optional[date] = None,
                         today: Optional[date] = None) -> SpendingSummary:
        """Totals and category breakdowns for ``[start, end]``.

        Defaults to the calendar month containing ``today``.
        """
        today = today or date.today()
        month_start, month_end = month_range(today.year, today.month)
        start = start or month_start
        end = end or month_end

        frame = filter_by_date_range(self._frame(), start, end)
        expenses = expense_rows(frame)
        income = income_rows(frame)
        total_expenses = float(expenses['amount'].sum())
        total_income = float(income['amount'].sum())

        return SpendingSummary(
            total_expenses=total_expenses,
            total_income=total_income,
            net_savings=total_income - total_expenses,
            expenses_by_category=category_totals(expenses),
            income_by_category=category_totals(income),
            period_start=start,
            period_end=end,
        )

    # Trends -------------------------------------------------------------------

    def trends(self, granularity: str, span: Optional[int] = None,
               today: Optional[date] = None) -> List[TrendData]:
        """Exactly ``span`` zero-filled buckets ending with the one containing ``today``."""
        today = today or date.today()
        if span is None:
            span = DEFAULT_TREND_SPANS[granularity]
        if span <= 0:
            return []

        index = _bucket_index(granularity, span, today)
        frame = self._frame()
        frame = frame.assign(bucket=_bucket_keys(frame, granularity))

        expenses = expense_rows(frame).groupby('bucket')['amount'].sum().reindex(index, fill_value=0.0)
        income = income_rows(frame).groupby('bucket')['amount'].sum().reindex(index, fill_value=0.0)

        label_format = '%Y-%m' if granularity == 'monthly' else '%Y-%m-%d'
        return [
            TrendData(
                date=bucket.strftime(label_format),
                expenses=float(spent),
                income=float(earned),
                net_savings=float(earned) - float(spent),
            )
            for bucket, spent, earned in zip(index, expenses, income)
        ]

    def daily_trends(self, days: int = 30, today: Optional[date] = None) -> List[TrendData]:
        return self.trends('daily', days, today)

    def weekly_trends(self, weeks: int = 12, today: Optional[date] = None) -> List[TrendData]:
        return self.trends('weekly', weeks, today)

    def monthly_trends(self, months: int = 12, today: Optional[date] = None) -> List[TrendData]:
        return self.trends('monthly', months, today)

    # Reports ------------------------------------------------------------------

    def monthly_report(self, year: Optional[int] = None, month: Optional[int] = None,
                       today: Optional[date] = None) -> MonthlyReport:
        today = today or date.today()
        year = year or today.year
        month = month or today.month
        start, end = month_range(year, month)

        return MonthlyReport(
            month=calendar.month_name[month],
            year=year,
            summary=self.spending_summary(start, end, today=today),
            budget_status=self.budget_engine.get_budget_status(today=today),
            goal_progress=self.goals.all_goal_progress(today=today),
            insights=[i for i in self.storage.get_insights() if not i.is_read],
            trends=self.daily_trends(30, today=today),
        )

    def compare_to_last_month(self, today: Optional[date] = None) -> MonthComparison:
        today = today or date.today()
        current = self.spending_summary(*month_range(today.year, today.month))
        last = self.spending_summary(*month_range(*previous_month(today)))

        current_totals = {c.category: c.total for c in current.expenses_by_category}
        last_totals = {c.category: c.total for c in last.expenses_by_category}
        categories = list(current_totals) + [c for c in last_totals if c not in current_totals]

        changes = [
            CategoryChange(category=c, change=current_totals.get(c, 0.0) - last_totals.get(c, 0.0))
            for c in categories
        ]
        increases = sorted((c for c in changes if c.change > 0), key=lambda c: c.change, reverse=True)
        decreases = sorted((c for c in changes if c.change < 0), key=lambda c: c.change)

        return MonthComparison(
            expense_change=current.total_expenses - last.total_expenses,
            income_change=current.total_income - last.total_income,
            savings_change=current.net_savings - last.net_savings,
            top_increases=increases[:TOP_CHANGES],
            top_decreases=decreases[:TOP_CHANGES],
        )

    # Top statistics -------------------------------------------------------------

    def top_expense_categories(self, limit: int = 5, today: Optional[date] = None) -> List[CategoryTotal]:
        return self.spending_summary(today=today).expenses_by_category[:limit]

    def top_income_categories(self, limit: int = 5, today: Optional[date] = None) -> List[CategoryTotal]:
        return self.spending_summary(today=today).income_by_category[:limit]

    def average_daily_expense(self, days: int = 30, today: Optional[date] = None) -> float:
        """Mean expense per day over the trailing ``days`` days, today included."""
        if days <= 0:
            return 0.0
        today = today or date.today()
        frame = filter_by_date_range(self._frame(), today - timedelta(days=days - 1), today)
        return float(expense_rows(frame)['amount'].sum()) / days
