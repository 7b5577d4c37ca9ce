"""SQLAlchemy models for parkledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountingCategory(Base):
    """Chart-of-accounts model."""

    __tablename__ = "accounting_categories"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category_type = Column(String(20), nullable=False)
    nature = Column(String(10), nullable=False)
    level = Column(Integer, nullable=False)
    parent_code = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class _FinanceCategoryColumns:
    """Columns shared by the income and expense category tables."""

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class IncomeCategory(_FinanceCategoryColumns, Base):
    """Income category derived from the accounting catalog."""

    __tablename__ = "income_categories"

    accounting_category_id = Column(
        Integer, ForeignKey("accounting_categories.id"), nullable=True
    )


class ExpenseCategory(_FinanceCategoryColumns, Base):
    """Expense category derived from the accounting catalog."""

    __tablename__ = "expense_categories"

    accounting_category_id = Column(
        Integer, ForeignKey("accounting_categories.id"), nullable=True
    )


FINANCE_CATEGORY_MODELS = {
    "income": IncomeCategory,
    "expense": ExpenseCategory,
}


class ModuleCategoryBinding(Base):
    """Per-module category binding model."""

    __tablename__ = "module_category_bindings"

    id = Column(Integer, primary_key=True)
    source_module = Column(String(50), nullable=False)
    category_code = Column(String(20), nullable=False)
    is_income = Column(Boolean, nullable=False)
    auto_generate = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "source_module", "category_code", "is_income", name="uq_module_category_binding"
        ),
    )


class LedgerTransaction(Base):
    """Posted income or expense model."""

    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True)
    transaction_type = Column(String(10), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=False)
    category_code = Column(String(20), nullable=False)
    # Points at income_categories or expense_categories depending on type
    category_id = Column(Integer, nullable=True)
    date = Column(Date, nullable=False)
    reference = Column(String(50), nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    sources = relationship(
        "TransactionSource", back_populates="transaction", cascade="all, delete-orphan"
    )


class TransactionSource(Base):
    """Maps a ledger transaction back to its originating entity."""

    __tablename__ = "transaction_sources"

    id = Column(Integer, primary_key=True)
    transaction_type = Column(String(10), nullable=False)
    transaction_id = Column(Integer, ForeignKey("ledger_transactions.id"), nullable=False)
    source_module = Column(String(50), nullable=False)
    source_table = Column(String(100), nullable=False)
    source_id = Column(String(100), nullable=False)
    original_amount = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Unique constraint on the idempotency key
    __table_args__ = (
        UniqueConstraint(
            "source_module",
            "source_table",
            "source_id",
            "transaction_type",
            name="uq_transaction_source_key",
        ),
    )

    # Relationships
    transaction = relationship("LedgerTransaction", back_populates="sources")


class VoidedSource(Base):
    """Source entities whose ledger transaction was deleted."""

    __tablename__ = "voided_sources"

    id = Column(Integer, primary_key=True)
    transaction_type = Column(String(10), nullable=False)
    source_module = Column(String(50), nullable=False)
    source_table = Column(String(100), nullable=False)
    source_id = Column(String(100), nullable=False)
    voided_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "source_module",
            "source_table",
            "source_id",
            "transaction_type",
            name="uq_voided_source_key",
        ),
    )


class CategorySyncRun(Base):
    """Bookkeeping row written by each category sync."""

    __tablename__ = "category_sync_runs"

    id = Column(Integer, primary_key=True)
    started_at = Column(DateTime, nullable=False)
    finished_at = Column(DateTime, nullable=False)
    accounting_count = Column(Integer, nullable=False)
    income_count = Column(Integer, nullable=False)
    expense_count = Column(Integer, nullable=False)
    warning_count = Column(Integer, default=0, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
