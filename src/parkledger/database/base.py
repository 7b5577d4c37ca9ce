"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from parkledger.domain.entities import (
    AccountingCategory,
    FinanceCategory,
    ModuleCategoryBinding,
    LedgerTransaction,
    TransactionSource,
    SyncRun,
)


class Database(ABC):
    """Abstract database interface for parkledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Run a block atomically.

        Commits when the outermost block exits normally and rolls back on
        any exception. Nested blocks join the outer transaction.
        """
        pass

    @abstractmethod
    def in_transaction(self) -> bool:
        """Check whether a transaction() block is open."""
        pass

    @abstractmethod
    def lock_category_sync(self) -> None:
        """Take the single-flight category sync lock for the current transaction."""
        pass

    # Accounting catalog operations
    @abstractmethod
    def create_accounting_category(
        self,
        code: str,
        name: str,
        category_type: str,
        nature: str,
        level: int,
        parent_code: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create an accounting category. Returns category ID."""
        pass

    @abstractmethod
    def get_accounting_category_by_code(self, code: str) -> Optional[AccountingCategory]:
        """Get accounting category by code."""
        pass

    @abstractmethod
    def list_accounting_categories(
        self, active_only: bool = True, category_type: Optional[str] = None
    ) -> list[AccountingCategory]:
        """List accounting categories ordered by code."""
        pass

    @abstractmethod
    def set_accounting_category_active(self, code: str, is_active: bool) -> None:
        """Activate or deactivate an accounting category."""
        pass

    # Income/expense category operations
    @abstractmethod
    def list_finance_categories(self, kind: str, active_only: bool = True) -> list[FinanceCategory]:
        """List income or expense categories ordered by code."""
        pass

    @abstractmethod
    def get_finance_category_by_code(self, kind: str, code: str) -> Optional[FinanceCategory]:
        """Get an income or expense category by code."""
        pass

    @abstractmethod
    def deactivate_finance_category(self, kind: str, code: str) -> None:
        """Mark one income or expense category inactive and unlinked."""
        pass

    @abstractmethod
    def upsert_finance_category(
        self,
        kind: str,
        code: str,
        name: str,
        description: Optional[str],
        accounting_category_id: Optional[int],
    ) -> int:
        """Insert or reactivate an income or expense category keyed by code."""
        pass

    # Sync bookkeeping
    @abstractmethod
    def record_sync_run(
        self,
        started_at: datetime,
        finished_at: datetime,
        accounting_count: int,
        income_count: int,
        expense_count: int,
        warning_count: int,
    ) -> int:
        """Record a completed category sync. Returns run ID."""
        pass

    @abstractmethod
    def get_last_sync_run(self) -> Optional[SyncRun]:
        """Get the most recent category sync."""
        pass

    # Module binding operations
    @abstractmethod
    def upsert_binding(
        self,
        source_module: str,
        category_code: str,
        is_income: bool,
        auto_generate: bool = True,
        sort_order: Optional[int] = None,
    ) -> int:
        """Insert or update a module binding. Returns binding ID."""
        pass

    @abstractmethod
    def delete_binding(self, source_module: str, category_code: str, is_income: bool) -> bool:
        """Delete a module binding. Returns True if a row was removed."""
        pass

    @abstractmethod
    def get_binding(
        self, source_module: str, category_code: str, is_income: bool
    ) -> Optional[ModuleCategoryBinding]:
        """Get a single module binding."""
        pass

    @abstractmethod
    def list_bindings(
        self, source_module: Optional[str] = None, is_income: Optional[bool] = None
    ) -> list[ModuleCategoryBinding]:
        """List bindings ordered by module, direction and sort order."""
        pass

    # Ledger operations
    @abstractmethod
    def create_ledger_transaction(
        self,
        transaction_type: str,
        amount: Decimal,
        description: str,
        category_code: str,
        category_id: Optional[int],
        date: date,
        reference: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Create a ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_ledger_transaction(self, transaction_id: int) -> Optional[LedgerTransaction]:
        """Get ledger transaction by ID."""
        pass

    @abstractmethod
    def update_ledger_transaction(
        self,
        transaction_id: int,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        date: Optional[date] = None,
        category_code: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> None:
        """Update ledger transaction fields."""
        pass

    @abstractmethod
    def delete_ledger_transaction(self, transaction_id: int) -> None:
        """Delete a ledger transaction."""
        pass

    @abstractmethod
    def list_ledger_transactions(
        self, transaction_type: Optional[str] = None, source_module: Optional[str] = None
    ) -> list[LedgerTransaction]:
        """List ledger transactions with optional filters."""
        pass

    # Transaction source operations
    @abstractmethod
    def find_transaction_source(
        self,
        source_module: str,
        source_table: str,
        source_id: str,
        transaction_type: str,
        for_update: bool = False,
    ) -> Optional[TransactionSource]:
        """Find the source row for an idempotency key."""
        pass

    @abstractmethod
    def create_transaction_source(
        self,
        transaction_id: int,
        source_module: str,
        source_table: str,
        source_id: str,
        transaction_type: str,
        original_amount: Decimal,
    ) -> int:
        """Create a source row. Returns source row ID.

        Raises:
            ConflictError: If the idempotency key already has a row
        """
        pass

    @abstractmethod
    def update_transaction_source(
        self, source_row_id: int, transaction_id: int, original_amount: Decimal
    ) -> None:
        """Point a source row at a transaction and amount."""
        pass

    @abstractmethod
    def delete_transaction_source(
        self, source_module: str, source_table: str, source_id: str, transaction_type: str
    ) -> bool:
        """Delete the source row for an idempotency key."""
        pass

    @abstractmethod
    def list_transaction_sources(self, source_module: Optional[str] = None) -> list[TransactionSource]:
        """List source rows, optionally for one module."""
        pass

    # Voided source markers
    @abstractmethod
    def mark_source_voided(
        self, source_module: str, source_table: str, source_id: str, transaction_type: str
    ) -> None:
        """Remember that an idempotency key reached the voided state."""
        pass

    @abstractmethod
    def clear_source_voided(
        self, source_module: str, source_table: str, source_id: str, transaction_type: str
    ) -> None:
        """Forget the voided marker for an idempotency key."""
        pass

    @abstractmethod
    def is_source_voided(
        self, source_module: str, source_table: str, source_id: str, transaction_type: str
    ) -> bool:
        """Check whether an idempotency key is voided."""
        pass
