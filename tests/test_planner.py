from __future__ import annotations

from datetime import date

from budget_planner import BudgetPlanner
from budget_planner.models import ParsedTransaction, Transaction

TODAY = date(2024, 3, 20)


def test_operations_fail_cleanly_before_initialize(tmp_path):
    planner = BudgetPlanner(tmp_path / "data")

    result = planner.add_expense(10.0, "Shopping", "Socks")

    assert not result.success
    assert "initialize" in result.error


def test_add_from_natural_language(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.add_from_natural_language("spent $50 on groceries yesterday", today=TODAY)

        assert result.success
        transaction = result.data["transaction"]
        assert isinstance(transaction, Transaction)
        assert isinstance(result.data["parsed"], ParsedTransaction)
        assert (transaction.type, transaction.amount, transaction.category) == ("expense", 50.0, "Food & Dining")
        assert transaction.date == date(2024, 3, 19)


def test_unparseable_text_is_a_failed_result(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.add_from_natural_language("hello world")

        assert not result.success
        assert result.message == "UnparseableInputError"
        assert planner.get_transactions().data == []


def test_validation_failures_carry_itemized_errors(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.create_budget("", "Food & Dining", 0, "monthly")

        assert not result.success
        assert result.message == "Validation failed"
        assert result.errors == ["Budget name is required", "Limit must be a positive number"]


def test_not_found_and_insufficient_funds_are_results(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        assert planner.delete_transaction("tx_missing").message == "NotFoundError"

        goal = planner.create_goal("Trip", 1000, current_amount=50).data
        result = planner.withdraw_from_goal(goal.id, 75)

        assert not result.success
        assert result.message == "InsufficientFundsError"


def test_goal_completion_message(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        goal = planner.create_goal("Emergency fund", 1000, current_amount=900).data

        result = planner.contribute_to_goal(goal.id, 150)

        assert result.success
        assert result.data.current_amount == 1050.0
        assert result.message == 'Goal "Emergency fund" completed!'


def test_budget_flow_through_facade(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        planner.create_budget("Food", "Food & Dining", 500, "monthly")
        planner.add_expense(200.0, "Food & Dining", "Market", date=date(2024, 3, 5))
        planner.add_expense(250.0, "Food & Dining", "Market", date=date(2024, 3, 18))

        [status] = planner.get_budget_status(today=TODAY).data
        [alert] = planner.check_budget_alerts(today=TODAY).data

        assert status.status == "warning"
        assert alert.status.spent == 450.0


def test_trends_reject_unknown_granularity(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.trends("hourly")

        assert not result.success
        assert result.errors


def test_categories_through_facade(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        created = planner.create_category("Pets", "expense")
        assert created.success
        assert created.data.id.startswith("cat_")

        assert not planner.create_category("pets", "expense").success
        assert not planner.create_category("Garden", "other").success
        assert not planner.delete_category("cat_food").success
        assert planner.delete_category(created.data.id).success


def test_process_recurring_message(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        planner.create_recurring("expense", 9.99, "Subscriptions", "Music", "monthly", start_date=date(2024, 1, 1))

        result = planner.process_recurring(today=TODAY)

        assert result.success
        assert result.message == "Processed 2 recurring transactions"


def test_data_persists_across_sessions(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        planner.add_income(1000.0, "Salary", "Paycheck", date=TODAY)
        backup = planner.backup()
        assert backup.success and backup.data.exists()

    with BudgetPlanner(tmp_path / "data") as planner:
        [transaction] = planner.get_transactions().data
        assert transaction.description == "Paycheck"
        assert "Paycheck" in planner.export_csv().data
        assert planner.export_json().success


def test_string_dates_are_stored_as_dates(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        added = planner.add_expense(10.0, "Food & Dining", "Lunch", date="2025-01-15")
        assert added.success
        assert added.data.date == date(2025, 1, 15)

        assert planner.add_expense(5.0, "Food & Dining", "Coffee", date=date(2025, 1, 16)).success

        updated = planner.update_transaction(added.data.id, date="2025-01-20")
        assert updated.success
        assert updated.data.date == date(2025, 1, 20)

        found = planner.get_transactions(start_date="2025-01-17", end_date="2025-01-31")
        assert [t.description for t in found.data] == ["Lunch"]

    with BudgetPlanner(tmp_path / "data") as planner:
        dates = sorted(t.date for t in planner.get_transactions().data)
        assert dates == [date(2025, 1, 16), date(2025, 1, 20)]


def test_malformed_string_date_is_a_validation_failure(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.add_expense(10.0, "Food & Dining", "Lunch", date="15/01/2025")

        assert not result.success
        assert result.message == "Validation failed"
        assert planner.get_transactions().data == []


def test_unknown_keyword_arguments_are_validation_failures(tmp_path):
    with BudgetPlanner(tmp_path / "data") as planner:
        result = planner.get_transactions(bogus=1)

        assert not result.success
        assert result.message == "Validation failed"
        assert "bogus" in result.errors[0]

        assert not planner.add_expense(10.0, "Shopping", "Socks", colour="blue").success
        assert not planner.create_goal("Trip", 1000, bogus=True).success
        assert planner.get_transactions().data == []
