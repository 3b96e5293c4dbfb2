from __future__ import annotations

from datetime import date, timedelta

import pytest

from budget_planner.exceptions import InsufficientFundsError, NotFoundError, ValidationError
from budget_planner.goals import GoalsService
from budget_planner.storage import StorageManager


def _goals(tmp_path) -> GoalsService:
    storage = StorageManager(tmp_path / "data")
    storage.initialize()
    return GoalsService(storage)


def _balance_matches_entries(goal) -> bool:
    return goal.current_amount == sum(c.signed_amount for c in goal.contributions)


def test_initial_amount_is_recorded_as_deposit(tmp_path):
    goals = _goals(tmp_path)

    goal = goals.create_goal("Emergency fund", 1000, current_amount=900, today=date(2024, 1, 1))

    assert goal.id.startswith("goal_")
    assert [c.direction for c in goal.contributions] == ["deposit"]
    assert _balance_matches_entries(goal)
    assert not goal.is_completed


def test_contribution_completes_goal(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Emergency fund", 1000, current_amount=900)

    updated = goals.contribute(goal.id, 150, note="Bonus", today=date(2024, 2, 1))

    assert updated.current_amount == 1050.0
    assert updated.is_completed
    assert updated.contributions[-1].note == "Bonus"
    assert updated.contributions[-1].date == date(2024, 2, 1)
    assert _balance_matches_entries(updated)
    assert goals.storage.get_goal(goal.id) == updated


def test_withdrawal_reduces_balance_and_reopens_goal(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Laptop", 500, current_amount=500)
    assert goal.is_completed

    updated = goals.withdraw(goal.id, 120)

    assert updated.current_amount == 380.0
    assert not updated.is_completed
    assert updated.contributions[-1].direction == "withdrawal"
    assert updated.contributions[-1].amount == 120.0
    assert _balance_matches_entries(updated)


def test_withdrawal_beyond_balance_is_rejected(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Laptop", 500, current_amount=100)

    with pytest.raises(InsufficientFundsError) as excinfo:
        goals.withdraw(goal.id, 100.01)

    assert excinfo.value.available == 100.0
    assert goals.storage.get_goal(goal.id).current_amount == 100.0
    assert len(goals.storage.get_goal(goal.id).contributions) == 1


@pytest.mark.parametrize("amount", [0, -10, float("nan")])
def test_non_positive_contributions_are_rejected(tmp_path, amount):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Bike", 300)

    with pytest.raises(ValidationError):
        goals.contribute(goal.id, amount)


def test_unknown_goal_raises_not_found(tmp_path):
    goals = _goals(tmp_path)

    with pytest.raises(NotFoundError):
        goals.contribute("goal_missing", 10)
    with pytest.raises(NotFoundError):
        goals.goal_progress("goal_missing")
    with pytest.raises(NotFoundError):
        goals.delete_goal("goal_missing")


def test_create_goal_validation(tmp_path):
    goals = _goals(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        goals.create_goal("", 0, priority="urgent")

    assert excinfo.value.errors == [
        "Goal name is required",
        "Target amount must be a positive number",
        "Priority must be one of: low, medium, high",
    ]


def test_update_goal_cannot_touch_balance(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Bike", 300, current_amount=200)

    with pytest.raises(ValidationError):
        goals.update_goal(goal.id, current_amount=1000)

    lowered = goals.update_goal(goal.id, target_amount=150, priority="high")
    assert lowered.is_completed
    assert lowered.priority == "high"


def test_get_goals_filters_and_sorts(tmp_path):
    goals = _goals(tmp_path)
    goals.create_goal("Car", 5000, current_amount=500, priority="low", deadline=date(2025, 6, 1))
    goals.create_goal("Bike", 300, current_amount=300, priority="medium")
    goals.create_goal("Trip", 2000, current_amount=1500, priority="high", deadline=date(2024, 12, 1))

    assert [g.name for g in goals.get_goals(sort_by="name")] == ["Bike", "Car", "Trip"]
    assert [g.name for g in goals.get_goals(sort_by="progress")] == ["Bike", "Trip", "Car"]
    assert [g.name for g in goals.get_goals(sort_by="deadline")] == ["Trip", "Car", "Bike"]
    assert [g.name for g in goals.get_goals(sort_by="priority")] == ["Trip", "Bike", "Car"]
    assert [g.name for g in goals.get_goals(priority="low")] == ["Car"]
    assert [g.name for g in goals.active_goals()] == ["Trip", "Car"]
    assert [g.name for g in goals.completed_goals()] == ["Bike"]


def test_progress_without_deadline_is_on_track(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Rainy day", 1000, current_amount=250)

    progress = goals.goal_progress(goal.id)

    assert progress.percentage_complete == 25.0
    assert progress.days_remaining is None
    assert progress.on_track


def test_progress_against_deadline(tmp_path):
    goals = _goals(tmp_path)
    created = date(2024, 1, 1)
    goal = goals.create_goal("Trip", 1000, deadline=created + timedelta(days=100), today=created)

    assert goal.created_at.startswith("2024-01-01")
    assert goals.goal_progress(goal.id, today=created).on_track

    later = goals.goal_progress(goal.id, today=created + timedelta(days=90))
    assert later.days_remaining == 10
    assert not later.on_track

    goals.contribute(goal.id, 750, today=created + timedelta(days=90))
    assert goals.goal_progress(goal.id, today=created + timedelta(days=90)).on_track

    overdue = goals.goal_progress(goal.id, today=created + timedelta(days=120))
    assert overdue.days_remaining == 0


def test_progress_measured_from_pinned_creation_date(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal(
        "Trip", 1000, current_amount=50, deadline=date(2024, 12, 31), today=date(2024, 1, 1),
    )

    progress = goals.goal_progress(goal.id, today=date(2024, 1, 2))

    assert progress.days_remaining == 364
    assert progress.on_track


def test_withdraw_full_balance_built_from_fractional_deposits(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Coins", 5)
    goals.contribute(goal.id, 0.1)
    goals.contribute(goal.id, 0.7)

    emptied = goals.withdraw(goal.id, 0.8)

    assert emptied.current_amount == 0.0


def test_goals_summary(tmp_path):
    goals = _goals(tmp_path)
    goals.create_goal("Bike", 300, current_amount=300)
    goals.create_goal("Car", 700, current_amount=200)

    summary = goals.goals_summary()

    assert (summary.total_goals, summary.active_goals, summary.completed_goals) == (2, 1, 1)
    assert summary.total_saved == 500.0
    assert summary.total_target == 1000.0
    assert summary.overall_progress == 50.0


def test_suggest_contribution(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Car", 1000, current_amount=400, deadline=date(2024, 7, 1))
    open_ended = goals.create_goal("Someday", 1000)

    assert goals.suggest_contribution(goal.id, today=date(2024, 1, 15)) == 100
    # past the deadline the remainder is due within one month
    assert goals.suggest_contribution(goal.id, today=date(2024, 9, 1)) == 600
    assert goals.suggest_contribution(open_ended.id) is None


def test_contributions_survive_reload(tmp_path):
    goals = _goals(tmp_path)
    goal = goals.create_goal("Bike", 300)
    goals.contribute(goal.id, 100)
    goals.withdraw(goal.id, 40)

    storage = StorageManager(goals.storage.data_path)
    storage.initialize()
    reloaded = storage.get_goal(goal.id)

    assert [c.direction for c in reloaded.contributions] == ["deposit", "withdrawal"]
    assert reloaded.current_amount == 60.0
