"""
Account Management Module

Manages customer accounts and their stored balance. The balance is an
independently maintained field: it is set at creation and changed only by
set_balance / adjust_balance (or by the transaction processor when balance
maintenance is switched on).
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from enum import Enum

from .amounts import to_amount, ZERO
from .errors import NotFoundError, ValidationError
from .logging_config import get_logger, log_action
from .storage import StorageInterface


class AccountType(Enum):
    """Account product types"""
    SAVINGS = "Savings"
    CHECKING = "Checking"
    CREDIT = "Credit"
    LOAN = "Loan"

    @classmethod
    def parse(cls, value: Union['AccountType', str]) -> 'AccountType':
        """Accept an AccountType or its tag, case-insensitively"""
        if isinstance(value, cls):
            return value
        for member in cls:
            if isinstance(value, str) and value.strip().lower() == member.value.lower():
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(f"Invalid account type {value!r}. Allowed values: {allowed}")


@dataclass
class Account:
    """Customer account with a stored balance"""
    id: int
    customer_id: int
    account_type: AccountType
    balance: Decimal = ZERO
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "account_type": self.account_type.value,
            "balance": str(self.balance),
            "created_at": self.created_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            customer_id=data['customer_id'],
            account_type=AccountType(data['account_type']),
            balance=Decimal(data['balance']),
            created_at=datetime.fromisoformat(data['created_at'])
        )


class AccountManager:
    """
    Manages account lifecycle and balance maintenance
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.accounts_table = "accounts"
        self.logger = get_logger("financial_analysis.accounts")

    def create_account(
        self,
        customer_id: int,
        account_type: Union[AccountType, str],
        balance: Any = ZERO
    ) -> Account:
        """
        Create a new account

        Args:
            customer_id: ID of account owner
            account_type: Savings, Checking, Credit or Loan
            balance: Opening balance (defaults to 0.00)

        Returns:
            Created Account object

        Raises:
            ValidationError: If the type or balance is invalid
            IntegrityError: If the customer does not exist
        """
        account = Account(
            id=0,
            customer_id=customer_id,
            account_type=AccountType.parse(account_type),
            balance=to_amount(balance, "balance")
        )

        data = account.to_dict()
        del data['id']
        account.id = self.storage.insert(self.accounts_table, data)

        log_action(
            self.logger, "info", f"Account created: {account.account_type.value}",
            action="account_created", resource=f"account:{account.id}",
            extra={"customer_id": customer_id, "balance": str(account.balance)}
        )

        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID"""
        account_dict = self.storage.load(self.accounts_table, account_id)
        if account_dict:
            return Account.from_dict(account_dict)
        return None

    def get_customer_accounts(self, customer_id: int) -> List[Account]:
        """Get all accounts for a customer"""
        accounts_data = self.storage.find(self.accounts_table, {"customer_id": customer_id})
        return [Account.from_dict(data) for data in accounts_data]

    def list_accounts(self) -> List[Account]:
        """Get all accounts ordered by ID"""
        return [Account.from_dict(data) for data in self.storage.load_all(self.accounts_table)]

    def set_balance(self, account_id: int, balance: Any) -> Account:
        """
        Overwrite an account's stored balance

        Raises:
            NotFoundError: If the account does not exist
        """
        new_balance = to_amount(balance, "balance")

        with self.storage.atomic():
            account = self.get_account(account_id)
            if not account:
                raise NotFoundError(f"Account {account_id} not found")

            old_balance = account.balance
            account.balance = new_balance
            self.storage.update(self.accounts_table, account_id, {"balance": str(new_balance)})

        log_action(
            self.logger, "info", "Account balance updated",
            action="balance_updated", resource=f"account:{account_id}",
            extra={"old_balance": str(old_balance), "new_balance": str(new_balance)}
        )

        return account

    def adjust_balance(self, account_id: int, delta: Any) -> Account:
        """Add delta (which may be negative) to an account's stored balance"""
        delta = to_amount(delta, "delta")

        with self.storage.atomic():
            account = self.get_account(account_id)
            if not account:
                raise NotFoundError(f"Account {account_id} not found")
            return self.set_balance(account_id, account.balance + delta)

    def delete_account(self, account_id: int) -> bool:
        """
        Delete an account together with its transactions

        Returns:
            False if no such account exists
        """
        deleted = self.storage.delete(self.accounts_table, account_id)
        if deleted:
            log_action(
                self.logger, "info", "Account deleted with its transactions",
                action="account_deleted", resource=f"account:{account_id}"
            )
        return deleted
