"""Transaction service: CRUD, queries, recurring templates and stats."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .exceptions import NotFoundError
from .ledger import expense_rows, income_rows, transactions_frame
from .models import RecurringConfig, Transaction, TransactionStats, new_id, parse_date
from .storage import StorageManager
from .validation import ensure_valid, is_valid_date, transaction_errors

logger = logging.getLogger(__name__)

# Step between two generated occurrences of a recurring template.
FREQUENCY_OFFSETS: Dict[str, pd.DateOffset] = {
    'daily': pd.DateOffset(days=1),
    'weekly': pd.DateOffset(weeks=1),
    'biweekly': pd.DateOffset(weeks=2),
    'monthly': pd.DateOffset(months=1),
    'yearly': pd.DateOffset(years=1),
}


def advance_date(current: date, frequency: str) -> date:
    """Next due date after ``current``; month and year steps clamp to the month end."""
    try:
        offset = FREQUENCY_OFFSETS[frequency]
    except KeyError:
        raise ValueError(f"Unknown recurring frequency: {frequency}") from None
    return (pd.Timestamp(current) + offset).date()


class TransactionService:
    def __init__(self, storage: StorageManager):
        self.storage = storage

    def _normalize_category(self, category: str) -> str:
        stored = self.storage.get_category_by_name(category)
        return stored.name if stored is not None else category.strip()

    # CRUD ---------------------------------------------------------------------

    def add_transaction(
        self,
        type: str,
        amount: float,
        category: str,
        description: str,
        date: Optional[date] = None,
        tags: Optional[Sequence[str]] = None,
        merchant: Optional[str] = None,
        notes: Optional[str] = None,
        is_recurring: bool = False,
        recurring_config: Optional[RecurringConfig] = None,
        today: Optional[date] = None,
    ) -> Transaction:
        when = date or today or _today()
        tags = list(tags) if tags is not None else []
        ensure_valid(transaction_errors({
            'type': type,
            'amount': amount,
            'category': category,
            'description': description,
            'date': when,
            'tags': tags,
            'recurring_config': recurring_config,
        }))

        transaction = Transaction(
            id=new_id('tx'),
            type=type,
            amount=float(amount),
            category=self._normalize_category(category),
            description=description.strip(),
            date=parse_date(when),
            tags=tags,
            merchant=merchant,
            notes=notes,
            is_recurring=is_recurring,
            recurring_config=recurring_config,
        )
        self.storage.add_transaction(transaction)
        logger.info("Added %s %s of %.2f in %s", transaction.type, transaction.id, transaction.amount, transaction.category)
        return transaction

    def add_expense(self, amount: float, category: str, description: str, **options: Any) -> Transaction:
        return self.add_transaction('expense', amount, category, description, **options)

    def add_income(self, amount: float, category: str, description: str, **options: Any) -> Transaction:
        return self.add_transaction('income', amount, category, description, **options)

    def update_transaction(self, transaction_id: str, **updates: Any) -> Transaction:
        if self.storage.get_transaction(transaction_id) is None:
            raise NotFoundError('transaction', transaction_id)
        ensure_valid(transaction_errors(updates, partial=True))
        if 'date' in updates:
            updates['date'] = parse_date(updates['date'])
        if 'category' in updates:
            updates['category'] = self._normalize_category(updates['category'])
        return self.storage.update_transaction(transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> None:
        self.storage.delete_transaction(transaction_id)

    # Queries ------------------------------------------------------------------

    def get_transactions(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        tags: Optional[Sequence[str]] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """Filter the ledger; results are sorted newest first."""
        start_date = _date_filter('start_date', start_date)
        end_date = _date_filter('end_date', end_date)
        transactions = self.storage.get_transactions()

        if type:
            transactions = [t for t in transactions if t.type == type]
        if category:
            wanted = category.lower()
            transactions = [t for t in transactions if t.category.lower() == wanted]
        if start_date is not None:
            transactions = [t for t in transactions if t.date >= start_date]
        if end_date is not None:
            transactions = [t for t in transactions if t.date <= end_date]
        if min_amount is not None:
            transactions = [t for t in transactions if t.amount >= min_amount]
        if max_amount is not None:
            transactions = [t for t in transactions if t.amount <= max_amount]
        if tags:
            transactions = [t for t in transactions if any(tag in tags for tag in t.tags)]
        if search:
            needle = search.lower()
            transactions = [
                t for t in transactions
                if needle in t.description.lower()
                or needle in t.category.lower()
                or (t.merchant is not None and needle in t.merchant.lower())
            ]

        transactions.sort(key=lambda t: t.date, reverse=True)
        if limit:
            transactions = transactions[:limit]
        return transactions

    def recent_transactions(self, count: int = 10) -> List[Transaction]:
        return self.get_transactions(limit=count)

    def expenses(self, **filters: Any) -> List[Transaction]:
        filters['type'] = 'expense'
        return self.get_transactions(**filters)

    def income(self, **filters: Any) -> List[Transaction]:
        filters['type'] = 'income'
        return self.get_transactions(**filters)

    # Recurring ----------------------------------------------------------------

    def create_recurring(
        self,
        type: str,
        amount: float,
        category: str,
        description: str,
        frequency: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        occurrences: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Transaction:
        """Store a recurring template dated ``start_date``.

        The template is itself the first occurrence, so the schedule starts
        one step after it and ``occurrences`` (the total count, template
        included) is stored as the number still to be generated.
        """
        start = start_date or today or _today()
        if not is_valid_date(start):
            ensure_valid(['Valid start date is required (YYYY-MM-DD format)'])
        if end_date is not None and not is_valid_date(end_date):
            ensure_valid(['Invalid end date format (use YYYY-MM-DD)'])
        start = parse_date(start)
        if frequency not in FREQUENCY_OFFSETS:
            ensure_valid([f"Frequency must be one of: {', '.join(FREQUENCY_OFFSETS)}"])
        if occurrences is not None and occurrences < 1:
            ensure_valid(['Occurrences must be at least 1'])

        config = RecurringConfig(
            frequency=frequency,
            next_date=advance_date(start, frequency),
            end_date=parse_date(end_date) if end_date is not None else None,
            occurrences=occurrences - 1 if occurrences is not None else None,
        )
        return self.add_transaction(
            type, amount, category, description,
            date=start, is_recurring=True, recurring_config=config,
        )

    def process_recurring(self, today: Optional[date] = None) -> List[Transaction]:
        """Generate every occurrence that has come due up to ``today``."""
        today = today or _today()
        created: List[Transaction] = []

        templates = [t for t in self.storage.get_transactions() if t.is_recurring and t.recurring_config]
        for template in templates:
            config = template.recurring_config
            next_date = config.next_date
            remaining = config.occurrences
            generated = 0

            while next_date <= today:
                if config.end_date is not None and next_date > config.end_date:
                    break
                if remaining is not None and remaining <= 0:
                    break
                created.append(self.add_transaction(
                    template.type,
                    template.amount,
                    template.category,
                    f"{template.description} (auto)",
                    date=next_date,
                    tags=template.tags,
                    merchant=template.merchant,
                    notes=f"Generated from recurring: {template.id}",
                ))
                generated += 1
                next_date = advance_date(next_date, config.frequency)
                if remaining is not None:
                    remaining -= 1

            if generated:
                self.storage.update_transaction(template.id, {
                    'recurring_config': replace(config, next_date=next_date, occurrences=remaining),
                })

        logger.info("Processed %d recurring transactions", len(created))
        return created

    # Statistics ---------------------------------------------------------------

    def transaction_stats(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> TransactionStats:
        frame = transactions_frame(self.get_transactions(start_date=start_date, end_date=end_date))
        expenses = expense_rows(frame)
        income = income_rows(frame)

        total_expenses = float(expenses['amount'].sum())
        total_income = float(income['amount'].sum())

        top_category = None
        if not expenses.empty:
            by_category = expenses.groupby('category', sort=False)['amount'].sum()
            top_category = str(by_category.idxmax())

        return TransactionStats(
            total_transactions=len(frame),
            total_expenses=total_expenses,
            total_income=total_income,
            net_savings=total_income - total_expenses,
            avg_expense=total_expenses / len(expenses) if len(expenses) else 0.0,
            avg_income=total_income / len(income) if len(income) else 0.0,
            top_category=top_category,
        )


def _today() -> date:
    return date.today()


def _date_filter(name: str, value: Any) -> Optional[date]:
    if value is None:
        return None
    if not is_valid_date(value):
        ensure_valid([f'Invalid {name} format (use YYYY-MM-DD)'])
    return parse_date(value)
