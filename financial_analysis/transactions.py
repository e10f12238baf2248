"""
Transaction Processing Module

Handles deposits, withdrawals, transfers and payments against a single
account. Every insert runs through the BalanceGuard inside one atomic unit
of work, so the balance read, the comparison and the insert cannot
interleave with a concurrent withdrawal.

Transactions are append-only: there is no update or delete operation.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from enum import Enum

from .accounts import Account, AccountManager
from .amounts import to_positive_amount
from .errors import InsufficientFundsError, IntegrityError, ValidationError
from .logging_config import get_logger, log_action
from .storage import StorageInterface


class TransactionType(Enum):
    """Types of account transactions"""
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    TRANSFER = "Transfer"
    PAYMENT = "Payment"

    @classmethod
    def parse(cls, value: Union['TransactionType', str]) -> 'TransactionType':
        """Accept a TransactionType or its tag, case-insensitively"""
        if isinstance(value, cls):
            return value
        for member in cls:
            if isinstance(value, str) and value.strip().lower() == member.value.lower():
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(f"Invalid transaction type {value!r}. Allowed values: {allowed}")


@dataclass
class Transaction:
    """A single transaction against an account"""
    id: int
    account_id: int
    transaction_type: TransactionType
    amount: Decimal
    transaction_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "transaction_type": self.transaction_type.value,
            "amount": str(self.amount),
            "transaction_date": self.transaction_date.isoformat(),
            "description": self.description
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data['id'],
            account_id=data['account_id'],
            transaction_type=TransactionType(data['transaction_type']),
            amount=Decimal(data['amount']),
            transaction_date=datetime.fromisoformat(data['transaction_date']),
            description=data.get('description')
        )


class BalanceGuard:
    """
    Rejects withdrawals whose amount exceeds the account's current balance.

    Deposits, transfers and payments always pass. The guard never changes
    the balance itself.
    """

    def check(self, account: Account, transaction_type: TransactionType, amount: Decimal) -> None:
        """
        Raises:
            InsufficientFundsError: If a withdrawal would overdraw the account
        """
        if transaction_type != TransactionType.WITHDRAWAL:
            return
        if amount > account.balance:
            raise InsufficientFundsError(account.id, amount, account.balance)


class TransactionProcessor:
    """
    Guarded write path for account transactions
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_manager: AccountManager,
        guard: Optional[BalanceGuard] = None,
        maintain_balance: bool = False
    ):
        self.storage = storage
        self.account_manager = account_manager
        self.guard = guard or BalanceGuard()
        # When set, deposits and withdrawals are applied to Account.balance
        self.maintain_balance = maintain_balance
        self.table_name = "transactions"
        self.logger = get_logger("financial_analysis.transactions")

    def record_transaction(
        self,
        account_id: int,
        transaction_type: Union[TransactionType, str],
        amount: Any,
        description: Optional[str] = None,
        transaction_date: Optional[datetime] = None
    ) -> Transaction:
        """
        Validate and insert a transaction

        Args:
            account_id: Target account
            transaction_type: Deposit, Withdrawal, Transfer or Payment
            amount: Positive decimal amount
            description: Free-text description
            transaction_date: Defaults to now (UTC)

        Returns:
            The stored Transaction

        Raises:
            ValidationError: If the type or amount is invalid
            InsufficientFundsError: If a withdrawal exceeds the balance
            IntegrityError: If the account does not exist
        """
        transaction_type = TransactionType.parse(transaction_type)
        amount = to_positive_amount(amount)

        transaction = Transaction(
            id=0,
            account_id=account_id,
            transaction_type=transaction_type,
            amount=amount,
            transaction_date=transaction_date or datetime.now(timezone.utc),
            description=description
        )

        with self.storage.atomic():
            account = self.account_manager.get_account(account_id)
            if not account:
                raise IntegrityError(f"Account {account_id} does not exist")

            try:
                self.guard.check(account, transaction_type, amount)
            except InsufficientFundsError as e:
                log_action(
                    self.logger, "warning", "Withdrawal rejected: insufficient funds",
                    action="withdrawal_rejected", resource=f"account:{account_id}",
                    extra={"requested": str(e.requested), "available": str(e.available)}
                )
                raise

            data = transaction.to_dict()
            del data['id']
            transaction.id = self.storage.insert(self.table_name, data)

            if self.maintain_balance:
                self._apply_to_balance(transaction)

        log_action(
            self.logger, "info", f"Transaction recorded: {transaction_type.value}",
            action="transaction_recorded", resource=f"transaction:{transaction.id}",
            extra={"account_id": account_id, "amount": str(amount)}
        )

        return transaction

    def deposit(self, account_id: int, amount: Any, description: Optional[str] = None) -> Transaction:
        """Convenience method for deposits"""
        return self.record_transaction(account_id, TransactionType.DEPOSIT, amount, description)

    def withdraw(self, account_id: int, amount: Any, description: Optional[str] = None) -> Transaction:
        """Convenience method for withdrawals"""
        return self.record_transaction(account_id, TransactionType.WITHDRAWAL, amount, description)

    def transfer(self, account_id: int, amount: Any, description: Optional[str] = None) -> Transaction:
        """Convenience method for transfers"""
        return self.record_transaction(account_id, TransactionType.TRANSFER, amount, description)

    def payment(self, account_id: int, amount: Any, description: Optional[str] = None) -> Transaction:
        """Convenience method for payments"""
        return self.record_transaction(account_id, TransactionType.PAYMENT, amount, description)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID"""
        transaction_dict = self.storage.load(self.table_name, transaction_id)
        if transaction_dict:
            return Transaction.from_dict(transaction_dict)
        return None

    def get_account_transactions(self, account_id: int) -> List[Transaction]:
        """Get all transactions for an account ordered by ID"""
        transactions_data = self.storage.find(self.table_name, {"account_id": account_id})
        return [Transaction.from_dict(data) for data in transactions_data]

    def list_transactions(self) -> List[Transaction]:
        """Get all transactions ordered by ID"""
        return [Transaction.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def _apply_to_balance(self, transaction: Transaction) -> None:
        # Transfers and payments name no counterparty, so balance is left alone
        if transaction.transaction_type == TransactionType.DEPOSIT:
            self.account_manager.adjust_balance(transaction.account_id, transaction.amount)
        elif transaction.transaction_type == TransactionType.WITHDRAWAL:
            self.account_manager.adjust_balance(transaction.account_id, -transaction.amount)
