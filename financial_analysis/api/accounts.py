"""
Account management endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import FinanceSystem, get_finance_system
from .schemas import CreateAccountRequest, SetBalanceRequest


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(
    request: CreateAccountRequest,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Open an account for a customer"""
    account = system.account_manager.create_account(
        customer_id=request.customer_id,
        account_type=request.account_type,
        balance=request.balance
    )
    return {"account_id": account.id, "message": "Account created successfully"}


@router.get("/{account_id}")
async def get_account(
    account_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get account by ID"""
    account = system.account_manager.get_account(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account.to_dict()


@router.delete("/{account_id}")
async def delete_account(
    account_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Delete an account with its transactions"""
    if not system.account_manager.delete_account(account_id):
        raise HTTPException(status_code=404, detail="Account not found")
    return {"message": "Account deleted successfully"}


@router.put("/{account_id}/balance")
async def set_account_balance(
    account_id: int,
    request: SetBalanceRequest,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Overwrite the stored balance of an account"""
    account = system.account_manager.set_balance(account_id, request.balance)
    return account.to_dict()


@router.get("/{account_id}/transactions")
async def get_account_transactions(
    account_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get all transactions for an account"""
    transactions = system.transaction_processor.get_account_transactions(account_id)
    return {"transactions": [t.to_dict() for t in transactions]}
