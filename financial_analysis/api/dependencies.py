"""
Shared API dependencies
"""

from typing import Optional

from ..system import FinanceSystem


# Global system instance, created on first request
_finance_system: Optional[FinanceSystem] = None


def get_finance_system() -> FinanceSystem:
    """Dependency returning the process-wide FinanceSystem"""
    global _finance_system
    if _finance_system is None:
        _finance_system = FinanceSystem()
    return _finance_system
