from __future__ import annotations

from datetime import date

import pytest

from budget_planner.exceptions import NotFoundError, ValidationError
from budget_planner.storage import StorageManager
from budget_planner.transactions import TransactionService, advance_date


def _service(tmp_path) -> TransactionService:
    storage = StorageManager(tmp_path / "data")
    storage.initialize()
    return TransactionService(storage)


def test_add_expense_normalizes_category_and_defaults_date(tmp_path):
    service = _service(tmp_path)

    tx = service.add_expense(25.0, "food & dining", "Pizza", today=date(2024, 3, 20))

    assert tx.id.startswith("tx_") and len(tx.id) == 11
    assert tx.type == "expense"
    assert tx.category == "Food & Dining"
    assert tx.date == date(2024, 3, 20)
    assert service.storage.get_transaction(tx.id) == tx


def test_unknown_category_is_kept_as_given(tmp_path):
    service = _service(tmp_path)

    tx = service.add_income(300.0, "  Side Hustle ", "Logo design", date=date(2024, 3, 2))

    assert tx.category == "Side Hustle"


def test_validation_lists_every_broken_rule(tmp_path):
    service = _service(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        service.add_transaction("transfer", -5, "", "", date=date(2024, 3, 1))

    assert excinfo.value.errors == [
        'Type must be "expense" or "income"',
        "Amount must be a positive number",
        "Category is required",
        "Description is required",
    ]
    assert service.storage.get_transactions() == []


def test_get_transactions_filters_and_sorts_newest_first(tmp_path):
    service = _service(tmp_path)
    service.add_expense(10.0, "Food & Dining", "Coffee beans", date=date(2024, 3, 1), tags=["home"])
    service.add_expense(80.0, "Shopping", "Shoes", date=date(2024, 3, 5), merchant="Shoe Barn")
    service.add_income(500.0, "Salary", "Paycheck", date=date(2024, 3, 3))
    service.add_expense(40.0, "Food & Dining", "Dinner out", date=date(2024, 2, 20), tags=["date-night"])

    assert [t.description for t in service.get_transactions()] == [
        "Shoes", "Paycheck", "Coffee beans", "Dinner out",
    ]
    assert [t.amount for t in service.expenses(category="food & dining")] == [10.0, 40.0]
    assert [t.description for t in service.income()] == ["Paycheck"]
    assert len(service.get_transactions(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))) == 2
    assert [t.amount for t in service.get_transactions(min_amount=20, max_amount=100)] == [80.0, 40.0]
    assert [t.description for t in service.get_transactions(tags=["home", "other"])] == ["Coffee beans"]
    assert [t.description for t in service.get_transactions(search="barn")] == ["Shoes"]
    assert len(service.recent_transactions(2)) == 2


def test_update_and_delete(tmp_path):
    service = _service(tmp_path)
    tx = service.add_expense(10.0, "Shopping", "Socks", date=date(2024, 3, 1))

    updated = service.update_transaction(tx.id, amount=12.0, category="SHOPPING")
    assert updated.amount == 12.0
    assert updated.category == "Shopping"

    with pytest.raises(ValidationError):
        service.update_transaction(tx.id, amount=0)

    service.delete_transaction(tx.id)
    assert service.get_transactions() == []

    with pytest.raises(NotFoundError):
        service.update_transaction(tx.id, amount=5.0)
    with pytest.raises(NotFoundError):
        service.delete_transaction(tx.id)


def test_advance_date_clamps_to_month_end():
    assert advance_date(date(2024, 1, 31), "monthly") == date(2024, 2, 29)
    assert advance_date(date(2024, 2, 29), "yearly") == date(2025, 2, 28)
    assert advance_date(date(2024, 3, 1), "biweekly") == date(2024, 3, 15)


def test_process_recurring_catches_up_on_missed_dates(tmp_path):
    service = _service(tmp_path)
    template = service.create_recurring(
        "expense", 1200.0, "Bills & Utilities", "Rent", "monthly", start_date=date(2024, 1, 31),
    )
    assert template.recurring_config.next_date == date(2024, 2, 29)

    created = service.process_recurring(today=date(2024, 3, 31))

    assert [t.date for t in created] == [date(2024, 2, 29), date(2024, 3, 29)]
    assert all(t.description == "Rent (auto)" for t in created)
    assert all(t.notes == f"Generated from recurring: {template.id}" for t in created)
    assert all(not t.is_recurring for t in created)
    assert service.storage.get_transaction(template.id).recurring_config.next_date == date(2024, 4, 29)

    assert service.process_recurring(today=date(2024, 3, 31)) == []


def test_process_recurring_honours_occurrences(tmp_path):
    service = _service(tmp_path)
    template = service.create_recurring(
        "expense", 15.0, "Subscriptions", "Streaming", "weekly",
        start_date=date(2024, 3, 1), occurrences=3,
    )
    assert template.recurring_config.occurrences == 2

    created = service.process_recurring(today=date(2024, 3, 31))

    assert [t.date for t in created] == [date(2024, 3, 8), date(2024, 3, 15)]
    assert service.storage.get_transaction(template.id).recurring_config.occurrences == 0
    assert service.process_recurring(today=date(2024, 4, 30)) == []


def test_process_recurring_stops_at_end_date(tmp_path):
    service = _service(tmp_path)
    service.create_recurring(
        "income", 20.0, "Freelance", "Tutoring", "daily",
        start_date=date(2024, 3, 1), end_date=date(2024, 3, 3),
    )

    created = service.process_recurring(today=date(2024, 3, 10))

    assert [t.date for t in created] == [date(2024, 3, 2), date(2024, 3, 3)]


def test_recurring_accepts_iso_date_strings(tmp_path):
    service = _service(tmp_path)
    template = service.create_recurring(
        "income", 20.0, "Freelance", "Tutoring", "daily",
        start_date="2024-03-01", end_date="2024-03-02",
    )

    assert template.date == date(2024, 3, 1)
    assert template.recurring_config.end_date == date(2024, 3, 2)
    assert [t.date for t in service.process_recurring(today=date(2024, 3, 10))] == [date(2024, 3, 2)]

    with pytest.raises(ValidationError):
        service.get_transactions(start_date="March")


def test_create_recurring_rejects_unknown_frequency(tmp_path):
    service = _service(tmp_path)

    with pytest.raises(ValidationError):
        service.create_recurring("expense", 10.0, "Shopping", "Thing", "hourly")


def test_transaction_stats(tmp_path):
    service = _service(tmp_path)
    service.add_expense(30.0, "Food & Dining", "Lunch", date=date(2024, 3, 1))
    service.add_expense(50.0, "Food & Dining", "Dinner", date=date(2024, 3, 2))
    service.add_expense(60.0, "Shopping", "Jacket", date=date(2024, 3, 3))
    service.add_income(1000.0, "Salary", "Paycheck", date=date(2024, 3, 4))

    stats = service.transaction_stats()

    assert stats.total_transactions == 4
    assert stats.total_expenses == 140.0
    assert stats.total_income == 1000.0
    assert stats.net_savings == 860.0
    assert stats.avg_expense == pytest.approx(140.0 / 3)
    assert stats.avg_income == 1000.0
    assert stats.top_category == "Food & Dining"


def test_transaction_stats_on_empty_ledger(tmp_path):
    stats = _service(tmp_path).transaction_stats()

    assert stats.total_transactions == 0
    assert stats.avg_expense == 0.0
    assert stats.top_category is None
