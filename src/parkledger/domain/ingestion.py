"""Turns FinancialImpactEvents from source modules into ledger changes.

Per idempotency key an entity moves Absent -> Posted -> Voided. Voided is
terminal until an explicit create arrives for the same key.

    create: Absent -> Posted (insert), Posted -> Posted (overwrite, warned)
    update: Posted -> Posted (overwrite), Absent -> Posted (self-heal),
            Voided -> Voided (ignored, warned)
    delete: Posted -> Voided (remove), otherwise no-op
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Optional

from parkledger.database.base import Database
from parkledger.domain.bindings import ModuleBindingService, SOURCE_MODULES
from parkledger.domain.entities import (
    ACTIONS,
    CREATE,
    DELETE,
    TRANSACTION_TYPES,
    FinancialData,
    FinancialImpactEvent,
    TransactionSource,
)
from parkledger.domain.errors import (
    ConflictError,
    DuplicateCreateWarning,
    StaleUpdateWarning,
    UnknownCategoryWarning,
    ValidationError,
    source_key,
    unknown_source_module,
)
from parkledger.domain.source_ledger import TransactionSourceLedger
from parkledger.logging_config import get_logger
from parkledger.utils.amount_parser import parse_amount
from parkledger.utils.date_parser import month_key, parse_date
from parkledger.utils.resilience import resilient

logger = get_logger("ingestion")

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"
NOOP = "noop"
SKIPPED = "skipped"


@dataclass(frozen=True)
class IngestResult:
    """What ingesting one event did to the ledger."""

    outcome: str
    transaction_id: Optional[int] = None
    reference: Optional[str] = None
    warnings: list = field(default_factory=list)


def build_reference(module: str, entity_id: int | str, on_date: date) -> str:
    """Build the human-traceable reference, e.g. CONC-202501-42."""
    return f"{module[:4].upper()}-{month_key(on_date)}-{entity_id}"


def validate_financial_data(data: FinancialData) -> FinancialData:
    """Check the financial part of an event before anything is written.

    Returns:
        The data with amount normalized to a Decimal and date to a date

    Raises:
        ValidationError: Listing every problem found
    """
    problems = []

    amount = None
    if data.amount is None:
        problems.append("amount is required")
    else:
        try:
            amount = parse_amount(data.amount)
        except ValueError as e:
            problems.append(str(e))
        else:
            if amount <= 0:
                problems.append("amount must be greater than zero")

    if not data.description or not str(data.description).strip():
        problems.append("description is required")

    if not data.category_code or not str(data.category_code).strip():
        problems.append("category code is required")

    on_date = None
    if data.date is None or data.date == "":
        problems.append("date is required")
    else:
        try:
            on_date = parse_date(data.date)
        except ValueError as e:
            problems.append(str(e))

    if problems:
        raise ValidationError("Invalid financial data: " + "; ".join(problems))

    return replace(
        data,
        amount=amount,
        description=str(data.description).strip(),
        category_code=str(data.category_code).strip(),
        date=on_date,
    )


def _pick(payload: dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return None


def event_from_payload(payload: dict[str, Any]) -> FinancialImpactEvent:
    """Build an event from a module's JSON payload.

    Accepts camelCase (entityType, financialData, categoryCode, ...) or
    snake_case keys. Amount and date are kept raw and checked by the
    validation gate.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Event payload must be an object")
    raw_data = _pick(payload, "financialData", "financial_data") or {}
    if not isinstance(raw_data, dict):
        raise ValidationError("financialData must be an object")

    data = FinancialData(
        amount=raw_data.get("amount"),
        description=raw_data.get("description"),
        category_code=_pick(raw_data, "categoryCode", "category_code"),
        date=raw_data.get("date"),
        reference=raw_data.get("reference"),
        metadata=raw_data.get("metadata"),
    )
    return FinancialImpactEvent(
        module=payload.get("module"),
        action=payload.get("action"),
        entity_type=_pick(payload, "entityType", "entity_type"),
        entity_id=_pick(payload, "entityId", "entity_id"),
        transaction_type=_pick(payload, "transactionType", "transaction_type"),
        financial_data=data,
    )


class EventIngestor:
    """Applies FinancialImpactEvents to the ledger exactly once per entity."""

    def __init__(self, db: Database, category_cache_ttl: float = 300.0):
        """Initialize the ingestor.

        Args:
            db: Database instance
            category_cache_ttl: Seconds a category code -> id lookup stays cached.
                Sync never changes the id of a code, so caching is safe.
        """
        self.db = db
        self.bindings = ModuleBindingService(db)
        self.sources = TransactionSourceLedger(db)
        self._category_id = resilient(
            self._lookup_category_id, ttl=category_cache_ttl, max_attempts=1
        )

    def _lookup_category_id(self, kind: str, code: str) -> Optional[int]:
        category = self.db.get_finance_category_by_code(kind, code)
        return category.id if category is not None else None

    @staticmethod
    def _validate_event(event: FinancialImpactEvent) -> None:
        if event.module not in SOURCE_MODULES:
            raise ValidationError(unknown_source_module(event.module))
        if event.action not in ACTIONS:
            raise ValidationError(f"Unknown action '{event.action}'")
        if event.transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type '{event.transaction_type}'")
        if not event.entity_type or not str(event.entity_type).strip():
            raise ValidationError("entity type is required")
        if event.entity_id is None or str(event.entity_id).strip() == "":
            raise ValidationError("entity id is required")

    def _log_extra(self, event: FinancialImpactEvent, **extra) -> dict[str, Any]:
        return {
            "source_module": event.module,
            "source_table": event.entity_type,
            "source_id": event.source_id,
            "transaction_type": event.transaction_type,
            **extra,
        }

    def _warn(self, event: FinancialImpactEvent, warning, **extra) -> None:
        logger.warning(
            warning.message,
            extra=self._log_extra(event, warning=type(warning).__name__, **extra),
        )

    def ingest(self, event: FinancialImpactEvent) -> IngestResult:
        """Apply one event to the ledger.

        Validation happens before any write. Every write for the event runs
        in one transaction that starts by locking the entity's source row.

        Returns:
            IngestResult describing what changed

        Raises:
            ValidationError: If the event is malformed (nothing is written)
        """
        self._validate_event(event)

        if event.action == DELETE:
            with self.db.transaction():
                return self._delete(event)

        data = event.financial_data
        if not data.category_code:
            default = self.bindings.default_category(event.module, event.is_income)
            if default is not None:
                data = replace(data, category_code=default)
        data = validate_financial_data(data)

        if not self.bindings.is_auto_generate(event.module, data.category_code, event.is_income):
            logger.info(
                "Auto-generation disabled for %s -> %s, event skipped",
                event.module,
                data.category_code,
                extra=self._log_extra(event),
            )
            return IngestResult(outcome=SKIPPED)

        if self.db.in_transaction():
            return self._apply(event, data)
        try:
            return self._apply(event, data)
        except ConflictError:
            # Another writer posted the key after our lookup; apply on top of its row
            logger.info(
                "Concurrent posting for %s, retrying",
                source_key(*event.source_key),
                extra=self._log_extra(event),
            )
            return self._apply(event, data)

    def _apply(self, event: FinancialImpactEvent, data: FinancialData) -> IngestResult:
        with self.db.transaction():
            existing = self.sources.find_by_source(*event.source_key, for_update=True)

            if event.action == CREATE:
                if existing is not None:
                    warning = DuplicateCreateWarning(
                        f"Duplicate create for {source_key(*event.source_key)}; "
                        f"updating ledger transaction {existing.transaction_id}",
                        transaction_id=existing.transaction_id,
                    )
                    self._warn(event, warning)
                    result = self._overwrite(event, data, existing)
                    return replace(result, warnings=[warning, *result.warnings])
                self.db.clear_source_voided(*event.source_key)
                return self._post(event, data)

            if existing is not None:
                return self._overwrite(event, data, existing)
            if self.db.is_source_voided(*event.source_key):
                warning = StaleUpdateWarning(
                    f"Update for voided {source_key(*event.source_key)} ignored; "
                    "send a create to post it again"
                )
                self._warn(event, warning)
                return IngestResult(outcome=NOOP, warnings=[warning])
            logger.info(
                "Update without prior posting for %s, creating it",
                source_key(*event.source_key),
                extra=self._log_extra(event),
            )
            return self._post(event, data)

    def submit(self, event: FinancialImpactEvent) -> Optional[IngestResult]:
        """Entry point for source modules, called after their own write succeeds.

        Validation errors propagate to the caller. Any other failure leaves
        the ledger untouched and is logged for operator follow-up, because the
        module's own write has already happened.

        Returns:
            IngestResult, or None if the ledger write failed
        """
        try:
            return self.ingest(event)
        except ValidationError:
            raise
        except Exception:
            logger.exception(
                "Ledger write failed for %s; source record needs manual reconciliation",
                source_key(*event.source_key),
                extra=self._log_extra(event, action=event.action),
            )
            return None

    def _resolve_category_id(
        self, event: FinancialImpactEvent, code: str
    ) -> tuple[Optional[int], list]:
        category_id = self._category_id(event.transaction_type, code)
        if category_id is not None:
            return category_id, []
        # Misses are not kept; the next sync may create the category
        self._category_id.invalidate()
        warning = UnknownCategoryWarning(
            f"No {event.transaction_type} category with code {code}; posting without category id",
            code=code,
        )
        self._warn(event, warning)
        return None, [warning]

    def _post(self, event: FinancialImpactEvent, data: FinancialData) -> IngestResult:
        category_id, warnings = self._resolve_category_id(event, data.category_code)
        reference = data.reference or build_reference(event.module, event.entity_id, data.date)
        transaction_id = self.db.create_ledger_transaction(
            transaction_type=event.transaction_type,
            amount=data.amount,
            description=data.description,
            category_code=data.category_code,
            category_id=category_id,
            date=data.date,
            reference=reference,
            metadata=data.metadata,
        )
        self.sources.record(transaction_id, *event.source_key, amount=data.amount)
        logger.info(
            "Posted %s %s as ledger transaction %d",
            event.transaction_type,
            data.amount,
            transaction_id,
            extra=self._log_extra(event, transaction_id=transaction_id),
        )
        return IngestResult(
            outcome=CREATED, transaction_id=transaction_id, reference=reference, warnings=warnings
        )

    def _overwrite(
        self, event: FinancialImpactEvent, data: FinancialData, existing: TransactionSource
    ) -> IngestResult:
        transaction = self.db.get_ledger_transaction(existing.transaction_id)
        if transaction is None:
            # Source row outlived its transaction; post again and repoint it
            logger.warning(
                "Ledger transaction %d missing for %s, reposting",
                existing.transaction_id,
                source_key(*event.source_key),
                extra=self._log_extra(event),
            )
            return self._post(event, data)

        category_id, warnings = self._resolve_category_id(event, data.category_code)
        self.db.update_ledger_transaction(
            transaction.id,
            amount=data.amount,
            description=data.description,
            date=data.date,
            category_code=data.category_code,
            category_id=category_id,
        )
        self.sources.record(transaction.id, *event.source_key, amount=data.amount)
        logger.info(
            "Updated ledger transaction %d to %s",
            transaction.id,
            data.amount,
            extra=self._log_extra(event, transaction_id=transaction.id),
        )
        return IngestResult(
            outcome=UPDATED,
            transaction_id=transaction.id,
            reference=transaction.reference,
            warnings=warnings,
        )

    def _delete(self, event: FinancialImpactEvent) -> IngestResult:
        existing = self.sources.find_by_source(*event.source_key, for_update=True)
        if existing is None:
            logger.info(
                "Delete for unposted %s, nothing to do",
                source_key(*event.source_key),
                extra=self._log_extra(event),
            )
            return IngestResult(outcome=NOOP)

        self.sources.clear(*event.source_key)
        if self.db.get_ledger_transaction(existing.transaction_id) is not None:
            self.db.delete_ledger_transaction(existing.transaction_id)
        self.db.mark_source_voided(*event.source_key)
        logger.info(
            "Removed ledger transaction %d",
            existing.transaction_id,
            extra=self._log_extra(event, transaction_id=existing.transaction_id),
        )
        return IngestResult(outcome=DELETED, transaction_id=existing.transaction_id)
