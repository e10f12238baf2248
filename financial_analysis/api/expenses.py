"""
Expense endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import FinanceSystem, get_finance_system
from .schemas import CreateExpenseRequest


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    request: CreateExpenseRequest,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Record an expense for a customer"""
    expense = system.expense_manager.create_expense(
        customer_id=request.customer_id,
        category=request.category,
        amount=request.amount,
        expense_date=request.expense_date,
        description=request.description
    )
    return {"expense_id": expense.id, "message": "Expense recorded successfully"}


@router.get("/{expense_id}")
async def get_expense(
    expense_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Get expense by ID"""
    expense = system.expense_manager.get_expense(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense.to_dict()


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    system: FinanceSystem = Depends(get_finance_system)
):
    """Delete an expense"""
    if not system.expense_manager.delete_expense(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"message": "Expense deleted successfully"}
