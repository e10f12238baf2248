"""
Expense Tracking Module

Categorized expenses belong to a customer, not to an account.
"""

from decimal import Decimal
from datetime import date, datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .amounts import to_positive_amount
from .errors import ValidationError
from .logging_config import get_logger, log_action
from .storage import StorageInterface


CATEGORY_MAX_LENGTH = 50


@dataclass
class Expense:
    """A categorized customer expense"""
    id: int
    customer_id: int
    category: Optional[str]
    amount: Decimal
    expense_date: date = field(default_factory=lambda: datetime.now(timezone.utc).date())
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "category": self.category,
            "amount": str(self.amount),
            "expense_date": self.expense_date.isoformat(),
            "description": self.description
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        return cls(
            id=data['id'],
            customer_id=data['customer_id'],
            category=data.get('category'),
            amount=Decimal(data['amount']),
            expense_date=date.fromisoformat(data['expense_date']),
            description=data.get('description')
        )


class ExpenseManager:
    """
    Manages expense records
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "expenses"
        self.logger = get_logger("financial_analysis.expenses")

    def create_expense(
        self,
        customer_id: int,
        category: Optional[str],
        amount: Any,
        expense_date: Optional[date] = None,
        description: Optional[str] = None
    ) -> Expense:
        """
        Record an expense for a customer

        Raises:
            ValidationError: If the amount or category is invalid
            IntegrityError: If the customer does not exist
        """
        if category is not None and len(category) > CATEGORY_MAX_LENGTH:
            raise ValidationError(f"category must be at most {CATEGORY_MAX_LENGTH} characters")

        if isinstance(expense_date, datetime):
            expense_date = expense_date.date()

        expense = Expense(
            id=0,
            customer_id=customer_id,
            category=category,
            amount=to_positive_amount(amount),
            expense_date=expense_date or datetime.now(timezone.utc).date(),
            description=description
        )

        data = expense.to_dict()
        del data['id']
        expense.id = self.storage.insert(self.table_name, data)

        log_action(
            self.logger, "info", f"Expense recorded: {category}",
            action="expense_recorded", resource=f"expense:{expense.id}",
            extra={"customer_id": customer_id, "amount": str(expense.amount)}
        )

        return expense

    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID"""
        expense_dict = self.storage.load(self.table_name, expense_id)
        if expense_dict:
            return Expense.from_dict(expense_dict)
        return None

    def get_customer_expenses(self, customer_id: int) -> List[Expense]:
        """Get all expenses for a customer"""
        return [
            Expense.from_dict(data)
            for data in self.storage.find(self.table_name, {"customer_id": customer_id})
        ]

    def list_expenses(self) -> List[Expense]:
        """Get all expenses ordered by ID"""
        return [Expense.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def delete_expense(self, expense_id: int) -> bool:
        """Delete an expense; False if it does not exist"""
        deleted = self.storage.delete(self.table_name, expense_id)
        if deleted:
            log_action(
                self.logger, "info", "Expense deleted",
                action="expense_deleted", resource=f"expense:{expense_id}"
            )
        return deleted
