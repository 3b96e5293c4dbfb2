"""Validation rules for records entering the planner.

Each ``*_errors`` function returns the list of violated rules (empty when
the input is acceptable); ``ensure_valid`` turns a non-empty list into a
:class:`ValidationError`.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Iterable, List, Mapping

from .exceptions import ValidationError
from .models import (
    BUDGET_PERIODS,
    CATEGORY_TYPES,
    GOAL_PRIORITIES,
    RECURRING_FREQUENCIES,
    TRANSACTION_TYPES,
    parse_date,
)


def is_valid_date(value: Any) -> bool:
    if isinstance(value, date):
        return True
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def is_positive_amount(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def transaction_errors(data: Mapping[str, Any], partial: bool = False) -> List[str]:
    errors: List[str] = []

    if not partial or 'type' in data:
        if data.get('type') not in TRANSACTION_TYPES:
            errors.append('Type must be "expense" or "income"')

    if not partial or 'amount' in data:
        if data.get('amount') is None:
            errors.append('Amount is required')
        elif not is_positive_amount(data.get('amount')):
            errors.append('Amount must be a positive number')

    if not partial or 'category' in data:
        if not isinstance(data.get('category'), str) or not data.get('category', '').strip():
            errors.append('Category is required')

    if not partial or 'description' in data:
        if not isinstance(data.get('description'), str) or not data.get('description', '').strip():
            errors.append('Description is required')

    if not partial or 'date' in data:
        if not is_valid_date(data.get('date')):
            errors.append('Valid date is required (YYYY-MM-DD format)')

    tags = data.get('tags')
    if tags is not None and (not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags)):
        errors.append('Tags must be a list of strings')

    recurring = data.get('recurring_config')
    if recurring is not None and getattr(recurring, 'frequency', None) not in RECURRING_FREQUENCIES:
        errors.append(f"Frequency must be one of: {', '.join(RECURRING_FREQUENCIES)}")

    return errors


def budget_errors(data: Mapping[str, Any], partial: bool = False) -> List[str]:
    errors: List[str] = []

    if not partial or 'name' in data:
        if not isinstance(data.get('name'), str) or not data.get('name', '').strip():
            errors.append('Budget name is required')

    if not partial or 'category' in data:
        if not isinstance(data.get('category'), str) or not data.get('category', '').strip():
            errors.append('Category is required')

    if not partial or 'limit' in data:
        if data.get('limit') is None:
            errors.append('Limit is required')
        elif not is_positive_amount(data.get('limit')):
            errors.append('Limit must be a positive number')

    if not partial or 'period' in data:
        if data.get('period') not in BUDGET_PERIODS:
            errors.append(f"Period must be one of: {', '.join(BUDGET_PERIODS)}")

    if data.get('alert_threshold') is not None:
        threshold = data['alert_threshold']
        if not _is_number(threshold) or threshold < 0 or threshold > 1:
            errors.append('Alert threshold must be a number between 0 and 1')

    for key, label in (('start_date', 'start date'), ('end_date', 'end date')):
        if data.get(key) is not None and not is_valid_date(data[key]):
            errors.append(f'Invalid {label} format (use YYYY-MM-DD)')

    return errors


def goal_errors(data: Mapping[str, Any], partial: bool = False) -> List[str]:
    errors: List[str] = []

    if not partial or 'name' in data:
        if not isinstance(data.get('name'), str) or not data.get('name', '').strip():
            errors.append('Goal name is required')

    if not partial or 'target_amount' in data:
        if data.get('target_amount') is None:
            errors.append('Target amount is required')
        elif not is_positive_amount(data.get('target_amount')):
            errors.append('Target amount must be a positive number')

    if data.get('current_amount') is not None:
        current = data['current_amount']
        if not _is_number(current) or current < 0:
            errors.append('Current amount must be a non-negative number')

    if data.get('deadline') is not None and not is_valid_date(data['deadline']):
        errors.append('Invalid deadline format (use YYYY-MM-DD)')

    if data.get('priority') is not None and data['priority'] not in GOAL_PRIORITIES:
        errors.append(f"Priority must be one of: {', '.join(GOAL_PRIORITIES)}")

    return errors


def category_errors(data: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []
    if not isinstance(data.get('name'), str) or not data.get('name', '').strip():
        errors.append('Category name is required')
    if data.get('type') not in CATEGORY_TYPES:
        errors.append(f"Type must be one of: {', '.join(CATEGORY_TYPES)}")
    return errors


def ensure_valid(errors: Iterable[str]) -> None:
    errors = list(errors)
    if errors:
        raise ValidationError(errors)
