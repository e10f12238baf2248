"""
Transaction endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import FinanceSystem, get_finance_system
from .schemas import CreateTransactionRequest


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: CreateTransactionRequest,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Record a transaction; withdrawals are checked against the balance"""
    transaction = system.transaction_processor.record_transaction(
        account_id=request.account_id,
        transaction_type=request.transaction_type,
        amount=request.amount,
        description=request.description,
        transaction_date=request.transaction_date
    )
    return {
        "transaction_id": transaction.id,
        "message": f"{transaction.transaction_type.value} recorded successfully"
    }


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get transaction by ID"""
    transaction = system.transaction_processor.get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction.to_dict()
