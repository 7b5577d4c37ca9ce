"""Domain model entities for parkledger.

These are pure data classes representing business concepts, independent of
database schema. Source modules only ever build a FinancialImpactEvent; the
remaining entities are read back from the store.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Optional


INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
ACTIONS = (CREATE, UPDATE, DELETE)

CATEGORY_TYPES = ("Income", "Expense", "Asset", "Liability", "Equity")
NATURES = ("debit", "credit")


@dataclass(frozen=True)
class AccountingCategory:
    """Chart-of-accounts entry with hierarchical code."""

    id: int
    code: str
    name: str
    category_type: str
    nature: str
    level: int
    parent_code: Optional[str]
    is_active: bool
    created_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class FinanceCategory:
    """Income or expense category derived from the accounting catalog."""

    id: int
    kind: str
    code: str
    name: str
    description: Optional[str]
    accounting_category_id: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ModuleCategoryBinding:
    """Which category absorbs a source module's income or expense events."""

    id: int
    source_module: str
    category_code: str
    is_income: bool
    auto_generate: bool
    sort_order: int


@dataclass(frozen=True)
class LedgerTransaction:
    """Posted income or expense row."""

    id: int
    transaction_type: str
    amount: Decimal
    description: str
    category_code: str
    category_id: Optional[int]
    date: date
    reference: Optional[str]
    metadata: Optional[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TransactionSource:
    """Link from a ledger transaction back to the entity that caused it."""

    id: int
    transaction_type: str
    transaction_id: int
    source_module: str
    source_table: str
    source_id: str
    original_amount: Decimal
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SyncRun:
    """A completed category sync."""

    id: int
    started_at: datetime
    finished_at: datetime
    accounting_count: int
    income_count: int
    expense_count: int
    warning_count: int


@dataclass(frozen=True)
class FinancialData:
    """Money-relevant part of a FinancialImpactEvent."""

    amount: Optional[Decimal]
    description: Optional[str]
    category_code: Optional[str]
    date: Optional[date]
    reference: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class FinancialImpactEvent:
    """Emitted by a source module after its own write succeeds."""

    module: str
    action: str
    entity_type: str
    entity_id: int | str
    transaction_type: str
    financial_data: FinancialData

    @property
    def is_income(self) -> bool:
        return self.transaction_type == INCOME

    @property
    def source_id(self) -> str:
        return str(self.entity_id)

    @property
    def source_key(self) -> tuple[str, str, str, str]:
        """The idempotency key of this event."""
        return (self.module, self.entity_type, self.source_id, self.transaction_type)


@dataclass(frozen=True)
class SyncStats:
    """Counts reported to operators about category sync."""

    accounting: int
    income: int
    expense: int
    last_sync: Optional[datetime]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync_financial_categories run."""

    accounting_count: int
    income_count: int
    expense_count: int
    synced_at: datetime
    warnings: list = field(default_factory=list)
