"""Budget Planner - personal finance tracking backed by a local JSON document.

Records expenses and income, tracks per-category budgets and savings goals,
computes spending analytics and insights, and parses short phrases such as
``"spent $50 on groceries yesterday"`` into transactions.
"""

from .config import setup_logging
from .exceptions import (
    BudgetPlannerError,
    InsufficientFundsError,
    NotFoundError,
    UnparseableInputError,
    ValidationError,
)
from .parser import parse_natural_language
from .planner import BudgetPlanner
from .storage import StorageManager

__version__ = "1.0.0"

__all__ = [
    'BudgetPlanner',
    'BudgetPlannerError',
    'InsufficientFundsError',
    'NotFoundError',
    'StorageManager',
    'UnparseableInputError',
    'ValidationError',
    'parse_natural_language',
    'setup_logging',
]
