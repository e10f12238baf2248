"""
Reporting Engine Module

Read-only aggregate views over committed entity state. Every report is
recomputed on demand; nothing is cached or materialized. Looking up an
identifier with no matching rows yields an empty result, never an error.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence
from enum import Enum
from collections import OrderedDict
import csv
import io
import json

from .accounts import AccountManager
from .amounts import to_amount, ZERO
from .customers import CustomerManager
from .errors import ValidationError
from .expenses import ExpenseManager
from .transactions import TransactionProcessor, TransactionType


DEFAULT_LOW_BALANCE_THRESHOLD = Decimal('1000.00')
DEFAULT_TOP_SPENDERS_LIMIT = 5


class ReportFormat(Enum):
    """Output formats for reports"""
    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value) -> 'ReportFormat':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(f"Unsupported report format {value!r}")


class ReportRow:
    """Mixin giving report rows a JSON-friendly dict form"""

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, Decimal):
                result[key] = str(value)
            elif isinstance(value, (date, datetime)):
                result[key] = value.isoformat()
        return result


@dataclass
class CustomerBalance(ReportRow):
    customer_id: int
    full_name: str
    total_balance: Decimal


@dataclass
class AccountTransactionSummary(ReportRow):
    account_id: int
    total_transactions: int
    total_amount: Decimal


@dataclass
class TopSpender(ReportRow):
    customer_id: int
    full_name: str
    total_expenses: Decimal


@dataclass
class MonthlyExpense(ReportRow):
    month: int
    monthly_expense: Decimal


@dataclass
class LowBalanceAccount(ReportRow):
    account_id: int
    first_name: str
    last_name: str
    balance: Decimal


@dataclass
class CustomerTransaction(ReportRow):
    transaction_id: int
    first_name: str
    last_name: str
    transaction_type: str
    amount: Decimal
    transaction_date: datetime


class ReportingEngine:
    """
    Aggregation layer for customer, account and expense summaries
    """

    def __init__(
        self,
        customer_manager: CustomerManager,
        account_manager: AccountManager,
        transaction_processor: TransactionProcessor,
        expense_manager: ExpenseManager,
        low_balance_threshold: Any = DEFAULT_LOW_BALANCE_THRESHOLD,
        top_spenders_limit: int = DEFAULT_TOP_SPENDERS_LIMIT
    ):
        self.customer_manager = customer_manager
        self.account_manager = account_manager
        self.transaction_processor = transaction_processor
        self.expense_manager = expense_manager
        self.low_balance_threshold = to_amount(low_balance_threshold, "low_balance_threshold")
        self.top_spenders_limit = top_spenders_limit

    def customer_balance(self, customer_id: Optional[int] = None) -> List[CustomerBalance]:
        """
        Total balance per customer across all of their accounts.

        Customers without accounts produce no row.
        """
        totals: Dict[int, Decimal] = OrderedDict()
        for account in self.account_manager.list_accounts():
            if customer_id is not None and account.customer_id != customer_id:
                continue
            totals[account.customer_id] = totals.get(account.customer_id, ZERO) + account.balance

        rows = []
        for cid in sorted(totals):
            customer = self.customer_manager.get_customer(cid)
            if customer:
                rows.append(CustomerBalance(cid, customer.full_name, totals[cid]))
        return rows

    def account_transaction_summary(self, account_id: int) -> Optional[AccountTransactionSummary]:
        """Count and sum of every transaction on an account, of any type"""
        transactions = self.transaction_processor.get_account_transactions(account_id)
        if not transactions:
            return None

        return AccountTransactionSummary(
            account_id=account_id,
            total_transactions=len(transactions),
            total_amount=sum((t.amount for t in transactions), ZERO)
        )

    def top_spenders(self, limit: Optional[int] = None) -> List[TopSpender]:
        """Customers with the largest summed expenses, descending"""
        if limit is None:
            limit = self.top_spenders_limit
        if limit < 0:
            raise ValidationError("limit must not be negative")

        totals: Dict[int, Decimal] = {}
        for expense in self.expense_manager.list_expenses():
            totals[expense.customer_id] = totals.get(expense.customer_id, ZERO) + expense.amount

        # Stable sort keeps ascending customer id among equal totals
        ranked = sorted(sorted(totals), key=lambda cid: totals[cid], reverse=True)

        rows = []
        for cid in ranked[:limit]:
            customer = self.customer_manager.get_customer(cid)
            if customer:
                rows.append(TopSpender(cid, customer.full_name, totals[cid]))
        return rows

    def monthly_expense_summary(self) -> List[MonthlyExpense]:
        """
        Expense totals per calendar month, ascending by month.

        Years are not distinguished: January 2023 and January 2024 are
        summed together.
        """
        totals: Dict[int, Decimal] = {}
        for expense in self.expense_manager.list_expenses():
            month = expense.expense_date.month
            totals[month] = totals.get(month, ZERO) + expense.amount

        return [MonthlyExpense(month, totals[month]) for month in sorted(totals)]

    def low_balance_accounts(self, threshold: Any = None) -> List[LowBalanceAccount]:
        """Accounts whose balance is strictly below the threshold"""
        if threshold is None:
            threshold = self.low_balance_threshold
        else:
            threshold = to_amount(threshold, "threshold")

        rows = []
        for account in self.account_manager.list_accounts():
            if account.balance >= threshold:
                continue
            customer = self.customer_manager.get_customer(account.customer_id)
            if customer:
                rows.append(LowBalanceAccount(
                    account.id, customer.first_name, customer.last_name, account.balance
                ))
        return rows

    def customer_transactions(self, customer_id: int) -> List[CustomerTransaction]:
        """Every transaction on every account of a customer, ordered by ID"""
        customer = self.customer_manager.get_customer(customer_id)
        if not customer:
            return []

        rows = []
        for account in self.account_manager.get_customer_accounts(customer_id):
            for transaction in self.transaction_processor.get_account_transactions(account.id):
                rows.append(CustomerTransaction(
                    transaction_id=transaction.id,
                    first_name=customer.first_name,
                    last_name=customer.last_name,
                    transaction_type=transaction.transaction_type.value,
                    amount=transaction.amount,
                    transaction_date=transaction.transaction_date
                ))
        rows.sort(key=lambda row: row.transaction_id)
        return rows

    def total_deposit_revenue(self) -> Decimal:
        """Sum of all deposit amounts; 0.00 when there are none"""
        return sum(
            (t.amount for t in self.transaction_processor.list_transactions()
             if t.transaction_type == TransactionType.DEPOSIT),
            ZERO
        )

    def export_report(self, rows: Sequence[ReportRow], format: ReportFormat) -> str:
        """Render report rows as JSON or CSV text"""
        format = ReportFormat.parse(format)
        data = [row.to_dict() for row in rows]

        if format == ReportFormat.JSON:
            return json.dumps(data, indent=2)

        output = io.StringIO()
        if data:
            writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
            writer.writeheader()
            writer.writerows(data)
        return output.getvalue()
