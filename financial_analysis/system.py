"""
Service Container

Wires storage, entity managers, the transaction processor and the
reporting engine together from configuration.
"""

from typing import Optional

from .accounts import AccountManager
from .config import FinanceConfig, get_config
from .customers import CustomerManager
from .expenses import ExpenseManager
from .logging_config import get_logger
from .migrations import MigrationManager
from .reporting import ReportingEngine
from .storage import StorageInterface, create_storage
from .transactions import TransactionProcessor


class FinanceSystem:
    """Financial analysis system with all components initialized"""

    def __init__(
        self,
        config: Optional[FinanceConfig] = None,
        storage: Optional[StorageInterface] = None
    ):
        self.config = config or get_config()
        self.logger = get_logger("financial_analysis.system")

        # Initialize storage
        self.storage = storage or create_storage(
            self.config.database_url, echo=self.config.database_echo
        )

        if self.config.auto_migrate:
            MigrationManager(self.storage).migrate_up()

        # Initialize core components
        self.customer_manager = CustomerManager(self.storage)
        self.account_manager = AccountManager(self.storage)
        self.expense_manager = ExpenseManager(self.storage)
        self.transaction_processor = TransactionProcessor(
            self.storage, self.account_manager,
            maintain_balance=self.config.maintain_balance
        )
        self.reporting_engine = ReportingEngine(
            self.customer_manager, self.account_manager,
            self.transaction_processor, self.expense_manager,
            low_balance_threshold=self.config.low_balance_threshold,
            top_spenders_limit=self.config.top_spenders_limit
        )

        if self.config.maintain_balance:
            self.logger.info("Balance maintenance enabled: deposits and withdrawals update Account.balance")

    def close(self) -> None:
        """Close the storage backend"""
        self.storage.close()
