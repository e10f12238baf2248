"""
Decimal Amount Helpers

Every monetary value is a Decimal with two places, matching DECIMAL(15,2).
NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .errors import ValidationError


CENT = Decimal('0.01')
ZERO = Decimal('0.00')

# DECIMAL(15,2) leaves 13 digits before the point
MAX_INTEGER_DIGITS = 13


def to_amount(value: Any, field_name: str = "amount") -> Decimal:
    """
    Convert a value to a two-place Decimal.
    
    Args:
        value: Decimal, int, or numeric string (floats go through str())
        field_name: Name used in error messages
        
    Returns:
        Quantized Decimal
        
    Raises:
        ValidationError: If the value is not a finite number in range
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a decimal number")
    
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a decimal number, got {value!r}")
    
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be finite")
    
    if not amount.is_zero() and amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(f"{field_name} {value} exceeds DECIMAL(15,2) range")
    
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    # Rounding can carry into a fourteenth digit
    if not amount.is_zero() and amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(f"{field_name} {value} exceeds DECIMAL(15,2) range")
    
    return amount


def to_positive_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Convert to a two-place Decimal that must be greater than zero"""
    amount = to_amount(value, field_name)
    if amount <= ZERO:
        raise ValidationError(f"{field_name} must be positive")
    return amount
