"""Derives the income and expense category tables from the accounting catalog.

The income/expense tables are a read model of the catalog. Sync never
deletes a row: rows the catalog no longer backs are deactivated, backed rows
are inserted or refreshed, and rows that already match are left untouched.
Ledger transactions keep pointing at valid category ids even after the
backing accounting category disappears.
"""

from datetime import datetime, UTC
from typing import Optional

from parkledger.database.base import Database
from parkledger.domain.catalog import classify, leading_digit_kind
from parkledger.domain.entities import (
    AccountingCategory,
    EXPENSE,
    FinanceCategory,
    INCOME,
    SyncResult,
    SyncStats,
)
from parkledger.domain.errors import OrphanCategoryWarning, SyncConflictWarning
from parkledger.logging_config import get_logger

logger = get_logger("category_sync")


class CategorySyncService:
    """Service keeping income/expense categories in step with the catalog."""

    def __init__(self, db: Database):
        """Initialize category sync service.

        Args:
            db: Database instance
        """
        self.db = db

    def _plan(self, categories: list[AccountingCategory]) -> tuple[dict[str, tuple[str, AccountingCategory]], list]:
        """Classify catalog rows into {code: (kind, category)}.

        Catalog codes are unique, so the only conflict is an explicit type
        that disagrees with the code's leading digit.
        """
        plan: dict[str, tuple[str, AccountingCategory]] = {}
        warnings: list = []
        for category in categories:
            kind = classify(category)
            if kind is None:
                continue

            digit_kind = leading_digit_kind(category.code)
            if digit_kind is not None and digit_kind != kind:
                warnings.append(
                    SyncConflictWarning(
                        f"Accounting category {category.code} is typed {category.category_type} "
                        f"but its code implies {digit_kind}; using {kind}",
                        code=category.code,
                    )
                )
            plan[category.code] = (kind, category)
        return plan, warnings

    def sync_financial_categories(self) -> SyncResult:
        """Re-derive income and expense categories from the accounting catalog.

        Deactivation and upsert run in one transaction under the single-flight
        sync lock, so readers never observe an empty category list and two
        syncs never interleave.

        Returns:
            SyncResult with the counts of this run and any warnings
        """
        started_at = datetime.now(UTC)

        with self.db.transaction():
            self.db.lock_category_sync()

            accounting = self.db.list_accounting_categories(active_only=True)
            plan, warnings = self._plan(accounting)

            existing = {
                kind: {c.code: c for c in self.db.list_finance_categories(kind, active_only=False)}
                for kind in (INCOME, EXPENSE)
            }

            counts = {INCOME: 0, EXPENSE: 0}
            for code, (kind, category) in plan.items():
                current = existing[kind].get(code)
                wanted = (category.name, category.description, category.id, True)
                if current is None or (
                    current.name,
                    current.description,
                    current.accounting_category_id,
                    current.is_active,
                ) != wanted:
                    self.db.upsert_finance_category(
                        kind=kind,
                        code=code,
                        name=category.name,
                        description=category.description,
                        accounting_category_id=category.id,
                    )
                counts[kind] += 1

            for kind, rows in existing.items():
                for code in sorted(rows):
                    still_backed = code in plan and plan[code][0] == kind
                    if rows[code].is_active and not still_backed:
                        self.db.deactivate_finance_category(kind, code)
                        warnings.append(
                            OrphanCategoryWarning(
                                f"{kind.capitalize()} category {code} deactivated: "
                                "no active accounting category backs it",
                                code=code,
                                kind=kind,
                            )
                        )

            finished_at = datetime.now(UTC)
            self.db.record_sync_run(
                started_at=started_at,
                finished_at=finished_at,
                accounting_count=len(plan),
                income_count=counts[INCOME],
                expense_count=counts[EXPENSE],
                warning_count=len(warnings),
            )

        for warning in warnings:
            logger.warning(warning.message, extra={"warning": type(warning).__name__, **warning.details})
        logger.info(
            "Synced %d income and %d expense categories from %d accounting categories",
            counts[INCOME],
            counts[EXPENSE],
            len(plan),
        )

        return SyncResult(
            accounting_count=len(plan),
            income_count=counts[INCOME],
            expense_count=counts[EXPENSE],
            synced_at=finished_at,
            warnings=warnings,
        )

    def list_income_categories(self, active_only: bool = True) -> list[FinanceCategory]:
        """List income categories with their accounting_category_id."""
        return self.db.list_finance_categories(INCOME, active_only=active_only)

    def list_expense_categories(self, active_only: bool = True) -> list[FinanceCategory]:
        """List expense categories with their accounting_category_id."""
        return self.db.list_finance_categories(EXPENSE, active_only=active_only)

    def _classified_catalog(self) -> dict[str, tuple[str, int]]:
        plan, _ = self._plan(self.db.list_accounting_categories(active_only=True))
        return {code: (kind, category.id) for code, (kind, category) in plan.items()}

    def get_sync_stats(self) -> SyncStats:
        """Get counts of classified catalog rows and active finance categories."""
        last_run = self.db.get_last_sync_run()
        return SyncStats(
            accounting=len(self._classified_catalog()),
            income=len(self.list_income_categories()),
            expense=len(self.list_expense_categories()),
            last_sync=last_run.finished_at if last_run is not None else None,
        )

    def check_sync_status(self) -> bool:
        """Check whether the finance categories match the catalog.

        Returns:
            True when every active income/expense accounting category has an
            active finance category linked to it, and nothing else is active
        """
        expected = self._classified_catalog()
        actual: dict[str, tuple[str, Optional[int]]] = {}
        for kind in (INCOME, EXPENSE):
            for category in self.db.list_finance_categories(kind, active_only=True):
                actual[category.code] = (kind, category.accounting_category_id)
        return expected == actual
