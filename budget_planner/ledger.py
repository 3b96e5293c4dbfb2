"""Ledger frames - the transaction list as a pandas DataFrame.

Every read-side engine recomputes from the full ledger on each call; this
module is the single place where records become columns.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from .models import Transaction

LEDGER_COLUMNS = [
    'id', 'type', 'amount', 'category', 'description', 'date', 'tags', 'is_recurring',
]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build a typed DataFrame from transaction records.

    Adds ``signed_amount`` (income positive, expenses negative) for net
    calculations.  An empty ledger still yields every column.
    """
    rows = [
        {
            'id': t.id,
            'type': t.type,
            'amount': t.amount,
            'category': t.category,
            'description': t.description,
            'date': t.date,
            'tags': list(t.tags),
            'is_recurring': t.is_recurring,
        }
        for t in transactions
    ]
    frame = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    frame['date'] = pd.to_datetime(frame['date'])
    frame['amount'] = pd.to_numeric(frame['amount'], errors='coerce').fillna(0.0).astype(float)
    frame['is_recurring'] = frame['is_recurring'].fillna(False).astype(bool)
    frame['signed_amount'] = np.where(frame['type'] == 'income', frame['amount'], -frame['amount'])
    return frame


def expense_rows(frame: pd.DataFrame) -> pd.DataFrame:
    return frame[frame['type'] == 'expense']


def income_rows(frame: pd.DataFrame) -> pd.DataFrame:
    return frame[frame['type'] == 'income']


def filter_by_date_range(frame: pd.DataFrame, start: Optional[date] = None, end: Optional[date] = None) -> pd.DataFrame:
    """Keep rows dated within ``[start, end]``, both ends inclusive."""
    data = frame
    if start is not None:
        data = data[data['date'] >= pd.Timestamp(start)]
    if end is not None:
        data = data[data['date'] <= pd.Timestamp(end)]
    return data


# ---------------------------------------------------------------------------
# Calendar windows
# ---------------------------------------------------------------------------


def week_start(day: date) -> date:
    """Sunday starting the week that contains ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_range(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(day: date) -> Tuple[int, int]:
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1
