"""Savings goals: contributions, withdrawals and progress tracking.

A goal's balance is the signed sum of its contribution entries; every
deposit or withdrawal writes the new entry, the balance and the completion
flag in one store update so the three can never disagree on disk.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, List, Optional

from .exceptions import InsufficientFundsError, NotFoundError, ValidationError
from .models import GoalContribution, GoalProgress, GoalsSummary, SavingsGoal, new_id, parse_date
from .storage import StorageManager
from .validation import ensure_valid, goal_errors, is_positive_amount

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}
ON_TRACK_BUFFER = 0.8


def _progress(goal: SavingsGoal) -> float:
    return goal.current_amount / goal.target_amount if goal.target_amount > 0 else 0.0


class GoalsService:
    def __init__(self, storage: StorageManager):
        self.storage = storage

    def _require(self, goal_id: str) -> SavingsGoal:
        goal = self.storage.get_goal(goal_id)
        if goal is None:
            raise NotFoundError('goal', goal_id)
        return goal

    # CRUD ---------------------------------------------------------------------

    def create_goal(
        self,
        name: str,
        target_amount: float,
        current_amount: float = 0.0,
        description: Optional[str] = None,
        deadline: Optional[date] = None,
        priority: str = 'medium',
        today: Optional[date] = None,
    ) -> SavingsGoal:
        ensure_valid(goal_errors({
            'name': name,
            'target_amount': target_amount,
            'current_amount': current_amount,
            'deadline': deadline,
            'priority': priority,
        }))
        today = today or date.today()

        contributions: List[GoalContribution] = []
        if current_amount:
            contributions.append(GoalContribution(
                id=new_id('contrib'),
                direction='deposit',
                amount=float(current_amount),
                date=today,
                note='Initial amount',
            ))

        goal = SavingsGoal(
            id=new_id('goal'),
            name=name.strip(),
            target_amount=float(target_amount),
            current_amount=float(current_amount),
            description=description,
            deadline=parse_date(deadline) if deadline is not None else None,
            priority=priority,
            contributions=contributions,
            is_completed=current_amount >= target_amount,
            created_at=datetime.combine(today, datetime.now().time()).isoformat(),
        )
        self.storage.add_goal(goal)
        logger.info("Created goal %s (%s, target %.2f)", goal.id, goal.name, goal.target_amount)
        return goal

    def update_goal(self, goal_id: str, **updates: Any) -> SavingsGoal:
        goal = self._require(goal_id)
        if 'current_amount' in updates or 'contributions' in updates:
            raise ValidationError(['Use contribute() or withdraw() to change the saved amount'])
        ensure_valid(goal_errors(updates, partial=True))
        if updates.get('deadline') is not None:
            updates['deadline'] = parse_date(updates['deadline'])
        if 'target_amount' in updates:
            updates['target_amount'] = float(updates['target_amount'])
            updates['is_completed'] = goal.current_amount >= updates['target_amount']
        return self.storage.update_goal(goal_id, updates)

    def delete_goal(self, goal_id: str) -> None:
        self.storage.delete_goal(goal_id)

    # Contributions --------------------------------------------------------------

    def _record(self, goal: SavingsGoal, direction: str, amount: float,
                note: Optional[str], today: Optional[date]) -> SavingsGoal:
        entry = GoalContribution(
            id=new_id('contrib'),
            direction=direction,
            amount=float(amount),
            date=today or date.today(),
            note=note,
        )
        contributions = goal.contributions + [entry]
        current_amount = round(sum(c.signed_amount for c in contributions), 2)
        updated = self.storage.update_goal(goal.id, {
            'contributions': contributions,
            'current_amount': current_amount,
            'is_completed': current_amount >= goal.target_amount,
        })
        if updated.is_completed and not goal.is_completed:
            logger.info("Goal %s reached its target", goal.id)
        return updated

    def contribute(self, goal_id: str, amount: float, note: Optional[str] = None,
                   today: Optional[date] = None) -> SavingsGoal:
        if not is_positive_amount(amount):
            raise ValidationError(['Amount must be a positive number'])
        goal = self._require(goal_id)
        return self._record(goal, 'deposit', amount, note, today)

    def withdraw(self, goal_id: str, amount: float, note: Optional[str] = None,
                 today: Optional[date] = None) -> SavingsGoal:
        if not is_positive_amount(amount):
            raise ValidationError(['Amount must be a positive number'])
        goal = self._require(goal_id)
        if amount > round(goal.current_amount, 2):
            raise InsufficientFundsError(goal.current_amount, amount)
        return self._record(goal, 'withdrawal', amount, note, today)

    # Queries --------------------------------------------------------------------

    def get_goals(self, priority: Optional[str] = None, is_completed: Optional[bool] = None,
                  sort_by: Optional[str] = None) -> List[SavingsGoal]:
        goals = self.storage.get_goals()

        if priority is not None:
            goals = [g for g in goals if g.priority == priority]
        if is_completed is not None:
            goals = [g for g in goals if g.is_completed == is_completed]

        if sort_by == 'name':
            goals.sort(key=lambda g: g.name.lower())
        elif sort_by == 'progress':
            goals.sort(key=_progress, reverse=True)
        elif sort_by == 'deadline':
            goals.sort(key=lambda g: (g.deadline is None, g.deadline or date.max))
        elif sort_by == 'priority':
            goals.sort(key=lambda g: PRIORITY_ORDER.get(g.priority, len(PRIORITY_ORDER)))
        elif sort_by is not None:
            raise ValidationError([f"Unknown sort key: {sort_by}"])
        return goals

    def active_goals(self) -> List[SavingsGoal]:
        return self.get_goals(is_completed=False, sort_by='priority')

    def completed_goals(self) -> List[SavingsGoal]:
        return self.get_goals(is_completed=True)

    # Progress -------------------------------------------------------------------

    def progress_for(self, goal: SavingsGoal, today: Optional[date] = None) -> GoalProgress:
        """Progress snapshot for ``goal``.

        Without a deadline a goal is always on track.  With one, the saved
        fraction must reach 80% of the fraction of time elapsed since the
        goal was created.
        """
        today = today or date.today()
        days_remaining = None
        on_track = True

        if goal.deadline is not None:
            days_remaining = max(0, (goal.deadline - today).days)
            total_days = (goal.deadline - parse_date(goal.created_at)).days
            if total_days > 0:
                expected = (total_days - days_remaining) / total_days
            else:
                expected = 1.0
            on_track = _progress(goal) >= expected * ON_TRACK_BUFFER

        return GoalProgress(
            goal_id=goal.id,
            goal_name=goal.name,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            percentage_complete=_progress(goal) * 100,
            days_remaining=days_remaining,
            on_track=on_track,
        )

    def goal_progress(self, goal_id: str, today: Optional[date] = None) -> GoalProgress:
        return self.progress_for(self._require(goal_id), today)

    def all_goal_progress(self, today: Optional[date] = None) -> List[GoalProgress]:
        return [self.progress_for(g, today) for g in self.storage.get_goals()]

    def goals_summary(self) -> GoalsSummary:
        goals = self.storage.get_goals()
        completed = sum(1 for g in goals if g.is_completed)
        total_saved = sum(g.current_amount for g in goals)
        total_target = sum(g.target_amount for g in goals)
        return GoalsSummary(
            total_goals=len(goals),
            active_goals=len(goals) - completed,
            completed_goals=completed,
            total_saved=total_saved,
            total_target=total_target,
            overall_progress=total_saved / total_target * 100 if total_target > 0 else 0.0,
        )

    def suggest_contribution(self, goal_id: str, today: Optional[date] = None) -> Optional[int]:
        """Monthly amount that closes the gap by the deadline, or None."""
        goal = self._require(goal_id)
        if goal.deadline is None or goal.is_completed:
            return None
        today = today or date.today()
        months_left = max(1, (goal.deadline.year - today.year) * 12 + goal.deadline.month - today.month)
        remaining = goal.target_amount - goal.current_amount
        return int(math.ceil(remaining / months_left))
