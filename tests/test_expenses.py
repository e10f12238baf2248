"""
Test suite for expense tracking
"""

import pytest
from decimal import Decimal
from datetime import date, datetime, timezone

from financial_analysis.storage import InMemoryStorage
from financial_analysis.customers import CustomerManager
from financial_analysis.expenses import ExpenseManager
from financial_analysis.errors import IntegrityError, ValidationError


class TestExpenseManager:
    """Test expense recording"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.customer_manager = CustomerManager(self.storage)
        self.expense_manager = ExpenseManager(self.storage)

        self.customer = self.customer_manager.create_customer("John", "Doe", "john.doe@example.com")

    def test_create_expense(self):
        expense = self.expense_manager.create_expense(
            customer_id=self.customer.id,
            category="Food",
            amount="200",
            expense_date=date(2024, 1, 15),
            description="Lunch at a restaurant"
        )

        assert expense.id == 1
        assert expense.amount == Decimal('200.00')
        assert expense.expense_date == date(2024, 1, 15)

        loaded = self.expense_manager.get_expense(expense.id)
        assert loaded == expense

    def test_expense_date_defaults_to_today(self):
        expense = self.expense_manager.create_expense(self.customer.id, "Travel", "150.00")

        assert expense.expense_date == datetime.now(timezone.utc).date()

    def test_datetime_is_truncated_to_date(self):
        expense = self.expense_manager.create_expense(
            self.customer.id, "Travel", "150.00", datetime(2024, 1, 20, 18, 30)
        )

        assert expense.expense_date == date(2024, 1, 20)

    def test_invalid_amount(self):
        with pytest.raises(ValidationError):
            self.expense_manager.create_expense(self.customer.id, "Food", "0")

        with pytest.raises(ValidationError):
            self.expense_manager.create_expense(self.customer.id, "Food", "-12.50")

    def test_category_too_long(self):
        with pytest.raises(ValidationError):
            self.expense_manager.create_expense(self.customer.id, "x" * 51, "10.00")

    def test_unknown_customer_rejected(self):
        with pytest.raises(IntegrityError):
            self.expense_manager.create_expense(99, "Food", "10.00")

        assert self.expense_manager.list_expenses() == []

    def test_customer_expenses_and_delete(self):
        first = self.expense_manager.create_expense(self.customer.id, "Food", "10.00", date(2024, 1, 1))
        second = self.expense_manager.create_expense(self.customer.id, "Rent", "900.00", date(2024, 2, 1))

        assert [e.id for e in self.expense_manager.get_customer_expenses(self.customer.id)] == [first.id, second.id]

        assert self.expense_manager.delete_expense(first.id)
        assert not self.expense_manager.delete_expense(first.id)
        assert [e.id for e in self.expense_manager.list_expenses()] == [second.id]
