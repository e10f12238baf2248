"""
Financial Analysis

Personal-finance tracking: customers, accounts, transactions and expenses
with a guarded withdrawal path and aggregate reporting. All monetary values
use Decimal.
"""

__version__ = "1.0.0"
