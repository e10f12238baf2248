"""
Test suite for account management and balance maintenance
"""

import pytest
from decimal import Decimal

from financial_analysis.storage import InMemoryStorage
from financial_analysis.customers import CustomerManager
from financial_analysis.accounts import AccountManager, AccountType
from financial_analysis.transactions import TransactionProcessor
from financial_analysis.errors import IntegrityError, NotFoundError, ValidationError


class TestAccountManager:
    """Test account lifecycle"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.customer_manager = CustomerManager(self.storage)
        self.account_manager = AccountManager(self.storage)
        self.transaction_processor = TransactionProcessor(self.storage, self.account_manager)

        self.customer = self.customer_manager.create_customer(
            first_name="John",
            last_name="Doe",
            email="john.doe@example.com"
        )

    def test_create_account(self):
        """Test creating a savings account with an opening balance"""
        account = self.account_manager.create_account(
            customer_id=self.customer.id,
            account_type=AccountType.SAVINGS,
            balance="5000"
        )

        assert account.id == 1
        assert account.customer_id == self.customer.id
        assert account.account_type == AccountType.SAVINGS
        assert account.balance == Decimal('5000.00')
        assert str(account.balance) == "5000.00"

    def test_default_balance_is_zero(self):
        account = self.account_manager.create_account(self.customer.id, "Checking")

        assert account.balance == Decimal('0.00')
        assert self.account_manager.get_account(account.id).balance == Decimal('0.00')

    def test_account_type_tags(self):
        """Type tags are accepted case-insensitively"""
        assert AccountType.parse("loan") == AccountType.LOAN
        assert AccountType.parse(" Credit ") == AccountType.CREDIT
        assert AccountType.parse(AccountType.SAVINGS) == AccountType.SAVINGS

        with pytest.raises(ValidationError):
            AccountType.parse("Brokerage")

    def test_invalid_balance(self):
        with pytest.raises(ValidationError):
            self.account_manager.create_account(self.customer.id, "Savings", "lots")

        with pytest.raises(ValidationError):
            self.account_manager.create_account(self.customer.id, "Savings", "1" * 14)

    def test_unknown_customer_rejected(self):
        """An account must belong to an existing customer"""
        with pytest.raises(IntegrityError):
            self.account_manager.create_account(99, AccountType.CHECKING)

        assert self.account_manager.list_accounts() == []

    def test_get_customer_accounts(self):
        savings = self.account_manager.create_account(self.customer.id, "Savings", "5000.00")
        checking = self.account_manager.create_account(self.customer.id, "Checking", "300.00")
        other = self.customer_manager.create_customer("Jane", "Smith", "jane.smith@example.com")
        self.account_manager.create_account(other.id, "Checking", "2500.00")

        accounts = self.account_manager.get_customer_accounts(self.customer.id)
        assert [a.id for a in accounts] == [savings.id, checking.id]
        assert self.account_manager.get_customer_accounts(42) == []

    def test_set_balance(self):
        account = self.account_manager.create_account(self.customer.id, "Savings", "5000.00")

        updated = self.account_manager.set_balance(account.id, "800")

        assert updated.balance == Decimal('800.00')
        assert self.account_manager.get_account(account.id).balance == Decimal('800.00')

    def test_adjust_balance(self):
        account = self.account_manager.create_account(self.customer.id, "Savings", "5000.00")

        self.account_manager.adjust_balance(account.id, "2000.00")
        updated = self.account_manager.adjust_balance(account.id, Decimal('-500.00'))

        assert updated.balance == Decimal('6500.00')

    def test_balance_update_on_missing_account(self):
        with pytest.raises(NotFoundError):
            self.account_manager.set_balance(42, "10.00")

        with pytest.raises(NotFoundError):
            self.account_manager.adjust_balance(42, "10.00")

    def test_delete_account_cascades_to_transactions(self):
        account = self.account_manager.create_account(self.customer.id, "Savings", "5000.00")
        transaction = self.transaction_processor.deposit(account.id, "2000.00")

        assert self.account_manager.delete_account(account.id)

        assert self.account_manager.get_account(account.id) is None
        assert self.transaction_processor.get_transaction(transaction.id) is None
        assert self.customer_manager.get_customer(self.customer.id) is not None

    def test_delete_missing_account(self):
        assert not self.account_manager.delete_account(42)
