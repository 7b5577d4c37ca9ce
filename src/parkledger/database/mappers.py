"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the ledger schema can change
without touching the integration services.
"""

from parkledger.domain import entities as domain
from parkledger.database.models import (
    AccountingCategory as ORMAccountingCategory,
    IncomeCategory as ORMIncomeCategory,
    ExpenseCategory as ORMExpenseCategory,
    ModuleCategoryBinding as ORMModuleCategoryBinding,
    LedgerTransaction as ORMLedgerTransaction,
    TransactionSource as ORMTransactionSource,
    CategorySyncRun as ORMCategorySyncRun,
)


def accounting_category_to_domain(orm_category: ORMAccountingCategory) -> domain.AccountingCategory:
    """Convert SQLAlchemy AccountingCategory model to domain entity."""
    return domain.AccountingCategory(
        id=orm_category.id,
        code=orm_category.code,
        name=orm_category.name,
        category_type=orm_category.category_type,
        nature=orm_category.nature,
        level=orm_category.level,
        parent_code=orm_category.parent_code,
        is_active=orm_category.is_active,
        created_at=orm_category.created_at,
        description=orm_category.description,
    )


def finance_category_to_domain(
    orm_category: ORMIncomeCategory | ORMExpenseCategory,
) -> domain.FinanceCategory:
    """Convert an income or expense category model to a domain FinanceCategory."""
    kind = domain.INCOME if isinstance(orm_category, ORMIncomeCategory) else domain.EXPENSE
    return domain.FinanceCategory(
        id=orm_category.id,
        kind=kind,
        code=orm_category.code,
        name=orm_category.name,
        description=orm_category.description,
        accounting_category_id=orm_category.accounting_category_id,
        is_active=orm_category.is_active,
        created_at=orm_category.created_at,
        updated_at=orm_category.updated_at,
    )


def binding_to_domain(orm_binding: ORMModuleCategoryBinding) -> domain.ModuleCategoryBinding:
    """Convert SQLAlchemy ModuleCategoryBinding model to domain entity."""
    return domain.ModuleCategoryBinding(
        id=orm_binding.id,
        source_module=orm_binding.source_module,
        category_code=orm_binding.category_code,
        is_income=orm_binding.is_income,
        auto_generate=orm_binding.auto_generate,
        sort_order=orm_binding.sort_order,
    )


def ledger_transaction_to_domain(orm_transaction: ORMLedgerTransaction) -> domain.LedgerTransaction:
    """Convert SQLAlchemy LedgerTransaction model to domain entity."""
    return domain.LedgerTransaction(
        id=orm_transaction.id,
        transaction_type=orm_transaction.transaction_type,
        amount=orm_transaction.amount,
        description=orm_transaction.description,
        category_code=orm_transaction.category_code,
        category_id=orm_transaction.category_id,
        date=orm_transaction.date,
        reference=orm_transaction.reference,
        metadata=orm_transaction.event_metadata,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def transaction_source_to_domain(orm_source: ORMTransactionSource) -> domain.TransactionSource:
    """Convert SQLAlchemy TransactionSource model to domain entity."""
    return domain.TransactionSource(
        id=orm_source.id,
        transaction_type=orm_source.transaction_type,
        transaction_id=orm_source.transaction_id,
        source_module=orm_source.source_module,
        source_table=orm_source.source_table,
        source_id=orm_source.source_id,
        original_amount=orm_source.original_amount,
        created_at=orm_source.created_at,
        updated_at=orm_source.updated_at,
    )


def sync_run_to_domain(orm_run: ORMCategorySyncRun) -> domain.SyncRun:
    """Convert SQLAlchemy CategorySyncRun model to domain entity."""
    return domain.SyncRun(
        id=orm_run.id,
        started_at=orm_run.started_at,
        finished_at=orm_run.finished_at,
        accounting_count=orm_run.accounting_count,
        income_count=orm_run.income_count,
        expense_count=orm_run.expense_count,
        warning_count=orm_run.warning_count,
    )
