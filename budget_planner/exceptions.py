"""Budget planner exceptions"""

from __future__ import annotations

from typing import Iterable, List


class BudgetPlannerError(Exception):
    """Base exception for the budget planner"""

    pass


class ValidationError(BudgetPlannerError):
    """Input failed one or more required-field or range checks"""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__(", ".join(self.errors) or "Validation failed")


class NotFoundError(BudgetPlannerError):
    """Referenced record does not exist"""

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"No {entity} with ID: {record_id}")


class UnparseableInputError(BudgetPlannerError):
    """Natural-language input did not yield a transaction type or amount"""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Could not parse input: {text!r}")


class InsufficientFundsError(BudgetPlannerError):
    """Goal withdrawal exceeds the saved balance"""

    def __init__(self, available: float, requested: float):
        self.available = available
        self.requested = requested
        super().__init__(f"Only {available:.2f} available, {requested:.2f} requested")
