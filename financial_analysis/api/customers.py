"""
Customer management endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import FinanceSystem, get_finance_system
from .schemas import CreateCustomerRequest


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_customer(
    request: CreateCustomerRequest,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Create a new customer"""
    customer = system.customer_manager.create_customer(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone
    )
    return {"customer_id": customer.id, "message": "Customer created successfully"}


@router.get("/{customer_id}")
async def get_customer(
    customer_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get customer by ID"""
    customer = system.customer_manager.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer.to_dict()


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Delete a customer with their accounts, transactions and expenses"""
    if not system.customer_manager.delete_customer(customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"message": "Customer deleted successfully"}


@router.get("/{customer_id}/accounts")
async def get_customer_accounts(
    customer_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get all accounts for a customer"""
    accounts = system.account_manager.get_customer_accounts(customer_id)
    return {"accounts": [account.to_dict() for account in accounts]}


@router.get("/{customer_id}/expenses")
async def get_customer_expenses(
    customer_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get all expenses for a customer"""
    expenses = system.expense_manager.get_customer_expenses(customer_id)
    return {"expenses": [expense.to_dict() for expense in expenses]}


@router.get("/{customer_id}/transactions")
async def get_customer_transactions(
    customer_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get every transaction across a customer's accounts"""
    rows = system.reporting_engine.customer_transactions(customer_id)
    return {"transactions": [row.to_dict() for row in rows]}
