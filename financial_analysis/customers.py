"""
Customer Management Module

Manages customer profiles. Deleting a customer cascades to the customer's
accounts, their transactions, and the customer's expenses.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
import re

from .errors import IntegrityError, ValidationError
from .logging_config import get_logger, log_action
from .storage import StorageInterface


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 100
PHONE_MAX_LENGTH = 15


@dataclass
class Customer:
    """Customer profile"""
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        """Get customer's full name"""
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "created_at": self.created_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data['id'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            email=data['email'],
            phone=data.get('phone'),
            created_at=datetime.fromisoformat(data['created_at'])
        )


def _require_text(value: Optional[str], field_name: str, max_length: int) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


class CustomerManager:
    """
    Manages customer lifecycle
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "customers"
        self.logger = get_logger("financial_analysis.customers")

    def create_customer(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None
    ) -> Customer:
        """
        Create a new customer

        Args:
            first_name: Customer's first name
            last_name: Customer's last name
            email: Customer's email address, unique across customers
            phone: Optional phone number

        Returns:
            Created Customer object

        Raises:
            ValidationError: If a field is missing, too long or malformed
            IntegrityError: If the email is already registered
        """
        first_name = _require_text(first_name, "first_name", NAME_MAX_LENGTH)
        last_name = _require_text(last_name, "last_name", NAME_MAX_LENGTH)
        email = _require_text(email, "email", EMAIL_MAX_LENGTH)
        if not re.match(EMAIL_PATTERN, email):
            raise ValidationError("Invalid email format")

        if phone is not None:
            phone = phone.strip() or None
        if phone and len(phone) > PHONE_MAX_LENGTH:
            raise ValidationError(f"phone must be at most {PHONE_MAX_LENGTH} characters")

        customer = Customer(
            id=0,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone
        )

        with self.storage.atomic():
            if self.get_customer_by_email(email):
                raise IntegrityError(f"Customer with email {email} already exists")

            data = customer.to_dict()
            del data['id']
            customer.id = self.storage.insert(self.table_name, data)

        log_action(
            self.logger, "info", f"Customer created: {customer.full_name}",
            action="customer_created", resource=f"customer:{customer.id}"
        )

        return customer

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Get customer by ID"""
        customer_dict = self.storage.load(self.table_name, customer_id)
        if customer_dict:
            return Customer.from_dict(customer_dict)
        return None

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        """Get customer by email address"""
        customers = self.storage.find(self.table_name, {"email": email})
        if customers:
            return Customer.from_dict(customers[0])
        return None

    def list_customers(self) -> List[Customer]:
        """Get all customers ordered by ID"""
        return [Customer.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def delete_customer(self, customer_id: int) -> bool:
        """
        Delete a customer together with their accounts, transactions and expenses

        Returns:
            False if no such customer exists
        """
        deleted = self.storage.delete(self.table_name, customer_id)
        if deleted:
            log_action(
                self.logger, "info", "Customer deleted with dependent records",
                action="customer_deleted", resource=f"customer:{customer_id}"
            )
        return deleted
