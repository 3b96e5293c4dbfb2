"""Rule-based insights over the transaction ledger.

Four detectors run on each call to :meth:`InsightsEngine.generate_insights`
and every result is appended to the stored insight log:

- anomaly:      recent expenses over twice their category's average
- trend:        month-over-month expense change beyond 15%
- tip:          a pile of subscription or recurring transactions
- achievement:  tracking milestones
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

import pandas as pd

from .ledger import expense_rows, filter_by_date_range, month_range, previous_month, transactions_frame
from .models import Insight, new_id
from .storage import StorageManager

logger = logging.getLogger(__name__)

ANOMALY_MULTIPLIER = 2.0
RECENT_DAYS = 7
TREND_THRESHOLD = 15.0
TREND_HIGH_THRESHOLD = 30.0
SUBSCRIPTION_CATEGORY = 'Subscriptions'
SUBSCRIPTION_TIP_MIN = 3
GETTING_STARTED_COUNT = 10
STREAK_DAYS = 7


def _insight(type: str, title: str, message: str, priority: int,
             suggested_action: Optional[str] = None,
             related_transactions: Optional[List[str]] = None) -> Insight:
    return Insight(
        id=new_id('insight'),
        type=type,
        title=title,
        message=message,
        priority=priority,
        suggested_action=suggested_action,
        related_transactions=related_transactions or [],
    )


def detect_anomalies(frame: pd.DataFrame, today: date) -> List[Insight]:
    expenses = expense_rows(frame)
    if expenses.empty:
        return []

    expenses = expenses.assign(category_avg=expenses.groupby('category')['amount'].transform('mean'))
    recent = filter_by_date_range(expenses, today - timedelta(days=RECENT_DAYS - 1), today)
    flagged = recent[recent['amount'] > recent['category_avg'] * ANOMALY_MULTIPLIER]

    return [
        _insight(
            'anomaly',
            'Unusual Spending Detected',
            f"{row.description} ({row.category}) was {row.amount / row.category_avg:.1f}x your average",
            7,
            suggested_action=f"Review whether this {row.category} expense was necessary",
            related_transactions=[row.id],
        )
        for row in flagged.itertuples(index=False)
    ]


def analyze_trend(frame: pd.DataFrame, today: date) -> List[Insight]:
    expenses = expense_rows(frame)
    this_month = float(filter_by_date_range(expenses, *month_range(today.year, today.month))['amount'].sum())
    last_month = float(filter_by_date_range(expenses, *month_range(*previous_month(today)))['amount'].sum())

    if last_month <= 0:
        return []
    change = (this_month - last_month) / last_month * 100
    if abs(change) <= TREND_THRESHOLD:
        return []

    increased = change > 0
    return [_insight(
        'warning' if increased else 'achievement',
        'Spending Increased' if increased else 'Spending Decreased',
        f"Your expenses {'increased' if increased else 'decreased'} by {abs(change):.1f}% compared to last month",
        8 if abs(change) > TREND_HIGH_THRESHOLD else 5,
    )]


def subscription_tips(frame: pd.DataFrame) -> List[Insight]:
    subscriptions = frame[(frame['category'] == SUBSCRIPTION_CATEGORY) | frame['is_recurring']]
    if len(subscriptions) <= SUBSCRIPTION_TIP_MIN:
        return []

    total = float(subscriptions['amount'].sum())
    return [_insight(
        'tip',
        'Review Subscriptions',
        f"You have {len(subscriptions)} subscription or recurring transactions totaling {total:.2f}",
        6,
        suggested_action=f"Cancel the ones you no longer use to save up to {total:.2f} a month",
    )]


def check_achievements(frame: pd.DataFrame, today: date) -> List[Insight]:
    insights: List[Insight] = []

    if len(frame) == GETTING_STARTED_COUNT:
        insights.append(_insight(
            'achievement',
            'Getting Started!',
            f"You've logged your first {GETTING_STARTED_COUNT} transactions",
            3,
        ))

    recent = filter_by_date_range(frame, today - timedelta(days=STREAK_DAYS - 1), today)
    if recent['date'].dt.normalize().nunique() >= STREAK_DAYS:
        insights.append(_insight(
            'achievement',
            'Streak Master!',
            f"You've tracked transactions for {STREAK_DAYS} days in a row",
            4,
        ))

    return insights


class InsightsEngine:
    def __init__(self, storage: StorageManager):
        self.storage = storage

    def generate_insights(self, today: Optional[date] = None) -> List[Insight]:
        """Run every detector and append the results to the insight log.

        Repeated calls append again; earlier insights are never replaced.
        """
        today = today or date.today()
        frame = transactions_frame(self.storage.get_transactions())

        insights: List[Insight] = []
        insights.extend(detect_anomalies(frame, today))
        insights.extend(analyze_trend(frame, today))
        insights.extend(subscription_tips(frame))
        insights.extend(check_achievements(frame, today))

        if insights:
            self.storage.add_insights(insights)
        logger.info("Generated %d insights", len(insights))
        return insights

    def get_insights(self) -> List[Insight]:
        return self.storage.get_insights()

    def get_unread(self) -> List[Insight]:
        return [i for i in self.storage.get_insights() if not i.is_read]

    def mark_read(self, insight_id: str) -> Insight:
        return self.storage.mark_insight_read(insight_id)
