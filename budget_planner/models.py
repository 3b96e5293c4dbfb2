"""Core data models for the budget planner.

Entities (transactions, budgets, categories, goals, insights) are stored in
the JSON document and serialize to camelCase keys so the file keeps its
established shape.  Derived records (statuses, summaries, trends, reports)
are built on demand by the engines and never persisted.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

TRANSACTION_TYPES = ('expense', 'income')
RECURRING_FREQUENCIES = ('daily', 'weekly', 'biweekly', 'monthly', 'yearly')
BUDGET_PERIODS = ('daily', 'weekly', 'monthly', 'yearly')
GOAL_PRIORITIES = ('low', 'medium', 'high')
INSIGHT_TYPES = ('warning', 'tip', 'achievement', 'anomaly')
CATEGORY_TYPES = ('expense', 'income', 'both')
CONTRIBUTION_DIRECTIONS = ('deposit', 'withdrawal')
BUDGET_STATES = ('under', 'warning', 'exceeded')


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def now_iso() -> str:
    return datetime.now().isoformat()


def parse_date(value: Any) -> date:
    """Coerce an ISO string, datetime or date into a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _optional_date(value: Any) -> Optional[date]:
    if value in (None, ''):
        return None
    return parse_date(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass
class RecurringConfig:
    frequency: str
    next_date: date
    end_date: Optional[date] = None
    occurrences: Optional[int] = None  # remaining occurrences, None means unlimited

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'frequency': self.frequency,
            'nextDate': _iso(self.next_date),
            'endDate': _iso(self.end_date),
            'occurrences': self.occurrences,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecurringConfig':
        return cls(
            frequency=data['frequency'],
            next_date=parse_date(data['nextDate']),
            end_date=_optional_date(data.get('endDate')),
            occurrences=data.get('occurrences'),
        )


@dataclass
class Transaction:
    id: str
    type: str
    amount: float
    category: str
    description: str
    date: date
    tags: List[str] = field(default_factory=list)
    merchant: Optional[str] = None
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_config: Optional[RecurringConfig] = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'type': self.type,
            'amount': self.amount,
            'category': self.category,
            'description': self.description,
            'date': _iso(self.date),
            'tags': list(self.tags),
            'merchant': self.merchant,
            'notes': self.notes,
            'isRecurring': self.is_recurring,
            'recurringConfig': self.recurring_config.to_dict() if self.recurring_config else None,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        recurring = data.get('recurringConfig')
        return cls(
            id=data['id'],
            type=data['type'],
            amount=float(data['amount']),
            category=data['category'],
            description=data.get('description', ''),
            date=parse_date(data['date']),
            tags=list(data.get('tags') or []),
            merchant=data.get('merchant'),
            notes=data.get('notes'),
            is_recurring=bool(data.get('isRecurring', False)),
            recurring_config=RecurringConfig.from_dict(recurring) if recurring else None,
            created_at=data.get('createdAt') or now_iso(),
            updated_at=data.get('updatedAt') or now_iso(),
        )


@dataclass
class ParsedTransaction:
    """Draft produced by the natural-language parser."""
    type: str
    amount: float
    category: str
    description: str
    date: date
    confidence: float
    raw_input: str


@dataclass
class TransactionStats:
    total_transactions: int
    total_expenses: float
    total_income: float
    net_savings: float
    avg_expense: float
    avg_income: float
    top_category: Optional[str]


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


@dataclass
class Budget:
    id: str
    name: str
    category: str
    limit: float
    period: str
    alert_threshold: float = 0.8
    start_date: date = field(default_factory=date.today)
    end_date: Optional[date] = None
    is_active: bool = True
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'limit': self.limit,
            'period': self.period,
            'alertThreshold': self.alert_threshold,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'isActive': self.is_active,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Budget':
        # A stored 'spent' value is never trusted; it is recomputed per query.
        return cls(
            id=data['id'],
            name=data['name'],
            category=data['category'],
            limit=float(data['limit']),
            period=data['period'],
            alert_threshold=float(data.get('alertThreshold', 0.8)),
            start_date=_optional_date(data.get('startDate')) or date.today(),
            end_date=_optional_date(data.get('endDate')),
            is_active=bool(data.get('isActive', True)),
            created_at=data.get('createdAt') or now_iso(),
            updated_at=data.get('updatedAt') or now_iso(),
        )


@dataclass
class BudgetStatus:
    budget_id: str
    budget_name: str
    category: str
    limit: float
    spent: float
    remaining: float
    percentage_used: float
    status: str


@dataclass
class BudgetAlert:
    budget: Budget
    status: BudgetStatus
    message: str


@dataclass
class BudgetSuggestion:
    category: str
    suggested: int
    average: float
    max: float


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@dataclass
class Category:
    id: str
    name: str
    type: str
    icon: Optional[str] = None
    color: Optional[str] = None
    is_default: bool = False
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'icon': self.icon,
            'color': self.color,
            'isDefault': self.is_default,
            'createdAt': self.created_at,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=data['id'],
            name=data['name'],
            type=data['type'],
            icon=data.get('icon'),
            color=data.get('color'),
            is_default=bool(data.get('isDefault', False)),
            created_at=data.get('createdAt') or now_iso(),
        )


# ---------------------------------------------------------------------------
# Savings goals
# ---------------------------------------------------------------------------


@dataclass
class GoalContribution:
    id: str
    direction: str
    amount: float  # always positive, direction carries the sign
    date: date
    note: Optional[str] = None

    @property
    def signed_amount(self) -> float:
        return -self.amount if self.direction == 'withdrawal' else self.amount

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'direction': self.direction,
            'amount': self.amount,
            'date': _iso(self.date),
            'note': self.note,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GoalContribution':
        amount = float(data['amount'])
        direction = data.get('direction')
        if direction is None:
            # legacy ledgers encode withdrawals as negative amounts
            direction = 'withdrawal' if amount < 0 else 'deposit'
        return cls(
            id=data.get('id') or new_id('contrib'),
            direction=direction,
            amount=abs(amount),
            date=parse_date(data['date']),
            note=data.get('note'),
        )


@dataclass
class SavingsGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    description: Optional[str] = None
    deadline: Optional[date] = None
    priority: str = 'medium'
    contributions: List[GoalContribution] = field(default_factory=list)
    is_completed: bool = False
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'targetAmount': self.target_amount,
            'currentAmount': self.current_amount,
            'deadline': _iso(self.deadline),
            'priority': self.priority,
            'contributions': [c.to_dict() for c in self.contributions],
            'isCompleted': self.is_completed,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavingsGoal':
        return cls(
            id=data['id'],
            name=data['name'],
            target_amount=float(data['targetAmount']),
            current_amount=float(data.get('currentAmount', 0.0)),
            description=data.get('description'),
            deadline=_optional_date(data.get('deadline')),
            priority=data.get('priority', 'medium'),
            contributions=[GoalContribution.from_dict(c) for c in data.get('contributions') or []],
            is_completed=bool(data.get('isCompleted', False)),
            created_at=data.get('createdAt') or now_iso(),
            updated_at=data.get('updatedAt') or now_iso(),
        )


@dataclass
class GoalProgress:
    goal_id: str
    goal_name: str
    target_amount: float
    current_amount: float
    percentage_complete: float
    days_remaining: Optional[int]
    on_track: bool


@dataclass
class GoalsSummary:
    total_goals: int
    active_goals: int
    completed_goals: int
    total_saved: float
    total_target: float
    overall_progress: float


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


@dataclass
class Insight:
    id: str
    type: str
    title: str
    message: str
    priority: int
    suggested_action: Optional[str] = None
    related_transactions: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)
    is_read: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'suggestedAction': self.suggested_action,
            'relatedTransactions': list(self.related_transactions),
            'priority': self.priority,
            'createdAt': self.created_at,
            'isRead': self.is_read,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Insight':
        return cls(
            id=data['id'],
            type=data['type'],
            title=data['title'],
            message=data['message'],
            priority=int(data.get('priority', 5)),
            suggested_action=data.get('suggestedAction'),
            related_transactions=list(data.get('relatedTransactions') or []),
            created_at=data.get('createdAt') or now_iso(),
            is_read=bool(data.get('isRead', False)),
        )


# ---------------------------------------------------------------------------
# Analytics records
# ---------------------------------------------------------------------------


@dataclass
class CategoryTotal:
    category: str
    total: float
    count: int
    percentage: float


@dataclass
class SpendingSummary:
    total_expenses: float
    total_income: float
    net_savings: float
    expenses_by_category: List[CategoryTotal]
    income_by_category: List[CategoryTotal]
    period_start: date
    period_end: date


@dataclass
class TrendData:
    date: str
    expenses: float
    income: float
    net_savings: float


@dataclass
class CategoryChange:
    category: str
    change: float


@dataclass
class MonthComparison:
    expense_change: float
    income_change: float
    savings_change: float
    top_increases: List[CategoryChange]
    top_decreases: List[CategoryChange]


@dataclass
class MonthlyReport:
    month: str
    year: int
    summary: SpendingSummary
    budget_status: List[BudgetStatus]
    goal_progress: List[GoalProgress]
    insights: List[Insight]
    trends: List[TrendData]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Facade results
# ---------------------------------------------------------------------------


@dataclass
class ActionResult:
    success: bool
    message: str
    data: Any = None
    error: Optional[str] = None
    errors: List[str] = field(default_factory=list)
