"""
Pydantic schemas for API requests
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


# Customer schemas
class CreateCustomerRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None


# Account schemas
class CreateAccountRequest(BaseModel):
    customer_id: int
    account_type: str = Field(..., description="Account type (Savings, Checking, Credit, Loan)")
    balance: str = Field("0.00", description="Opening balance as decimal string")


class SetBalanceRequest(BaseModel):
    balance: str = Field(..., description="New balance as decimal string")


# Transaction schemas
class CreateTransactionRequest(BaseModel):
    account_id: int
    transaction_type: str = Field(..., description="Transaction type (Deposit, Withdrawal, Transfer, Payment)")
    amount: str = Field(..., description="Positive decimal amount as string")
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None


# Expense schemas
class CreateExpenseRequest(BaseModel):
    customer_id: int
    category: Optional[str] = None
    amount: str = Field(..., description="Positive decimal amount as string")
    expense_date: Optional[date] = None
    description: Optional[str] = None
