"""
Domain Exceptions

Validation errors are expected, user-facing rejections. Integrity errors are
referential or uniqueness violations raised by the entity store.
"""

from decimal import Decimal


class FinanceError(Exception):
    """Base class for all financial_analysis errors"""
    pass


class ValidationError(FinanceError, ValueError):
    """Raised when input fails a business or format rule"""
    pass


class InsufficientFundsError(ValidationError):
    """Raised when a withdrawal would exceed the account balance"""
    
    def __init__(self, account_id: int, requested: Decimal, available: Decimal):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__("Insufficient funds for withdrawal.")


class IntegrityError(FinanceError):
    """Raised on foreign key, uniqueness or check constraint violations"""
    pass


class NotFoundError(FinanceError, LookupError):
    """Raised when a mutation targets a record that does not exist"""
    pass
