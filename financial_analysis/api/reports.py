"""
Reporting endpoints

List reports answer {"rows": [...]} by default, or CSV text with ?format=csv.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from .dependencies import FinanceSystem, get_finance_system
from ..reporting import ReportFormat, ReportRow


router = APIRouter()


def _render(system: FinanceSystem, rows: List[ReportRow], format: str):
    if ReportFormat.parse(format) == ReportFormat.CSV:
        return Response(
            content=system.reporting_engine.export_report(rows, ReportFormat.CSV),
            media_type="text/csv"
        )
    return {"rows": [row.to_dict() for row in rows]}


@router.get("/customer-balance")
async def customer_balance(
    customer_id: Optional[int] = None,
    format: str = "json",
    system: FinanceSystem = Depends(get_finance_system)
):
    """Total balance per customer"""
    return _render(system, system.reporting_engine.customer_balance(customer_id), format)


@router.get("/accounts/{account_id}/transaction-summary")
async def account_transaction_summary(
    account_id: int,
    format: str = "json",
    system: FinanceSystem = Depends(get_finance_system)
):
    """Transaction count and total for one account"""
    summary = system.reporting_engine.account_transaction_summary(account_id)
    return _render(system, [summary] if summary else [], format)


@router.get("/top-spenders")
async def top_spenders(
    limit: Optional[int] = None,
    format: str = "json",
    system: FinanceSystem = Depends(get_finance_system)
):
    """Customers with the highest summed expenses"""
    return _render(system, system.reporting_engine.top_spenders(limit), format)


@router.get("/monthly-expenses")
async def monthly_expenses(
    format: str = "json",
    system: FinanceSystem = Depends(get_finance_system)
):
    """Expense totals per calendar month"""
    return _render(system, system.reporting_engine.monthly_expense_summary(), format)


@router.get("/low-balance-accounts")
async def low_balance_accounts(
    threshold: Optional[str] = None,
    format: str = "json",
    system: FinanceSystem = Depends(get_finance_system)
):
    """Accounts with a balance below the threshold"""
    return _render(system, system.reporting_engine.low_balance_accounts(threshold), format)


@router.get("/deposit-revenue")
async def deposit_revenue(system: FinanceSystem = Depends(get_finance_system)):
    """Sum of all deposits"""
    return {"total_revenue": str(system.reporting_engine.total_deposit_revenue())}
