"""Transaction source ledger: the idempotency record of posted events.

Each row ties one ledger transaction to the (source_module, source_table,
source_id, transaction_type) key of the entity that caused it. Every
ingestion consults this ledger before touching ledger transactions.
"""

from decimal import Decimal
from typing import Optional

from parkledger.database.base import Database
from parkledger.domain.entities import TRANSACTION_TYPES, TransactionSource
from parkledger.domain.errors import ConflictError, ValidationError, source_key


class TransactionSourceLedger:
    """Lookup and bookkeeping for source rows."""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _check_type(transaction_type: str) -> None:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type '{transaction_type}'")

    def find_by_source(
        self,
        source_module: str,
        source_table: str,
        source_id: int | str,
        transaction_type: str,
        for_update: bool = False,
    ) -> Optional[TransactionSource]:
        """Find the row for an idempotency key.

        Args:
            for_update: Lock the row for the rest of the current transaction
        """
        self._check_type(transaction_type)
        return self.db.find_transaction_source(
            source_module, source_table, str(source_id), transaction_type, for_update=for_update
        )

    def record(
        self,
        transaction_id: int,
        source_module: str,
        source_table: str,
        source_id: int | str,
        transaction_type: str,
        amount: Decimal,
    ) -> int:
        """Record the source row for an idempotency key.

        An existing row is updated only when it already points at
        transaction_id or at a transaction that no longer exists.

        Returns:
            Source row ID

        Raises:
            ConflictError: If the key belongs to another live transaction
        """
        self._check_type(transaction_type)
        existing = self.db.find_transaction_source(
            source_module, source_table, str(source_id), transaction_type
        )
        if existing is not None:
            if (
                existing.transaction_id != transaction_id
                and self.db.get_ledger_transaction(existing.transaction_id) is not None
            ):
                raise ConflictError(
                    f"{source_key(source_module, source_table, str(source_id), transaction_type)} "
                    f"is already posted as ledger transaction {existing.transaction_id}"
                )
            self.db.update_transaction_source(existing.id, transaction_id, amount)
            return existing.id
        return self.db.create_transaction_source(
            transaction_id=transaction_id,
            source_module=source_module,
            source_table=source_table,
            source_id=str(source_id),
            transaction_type=transaction_type,
            original_amount=amount,
        )

    def clear(
        self, source_module: str, source_table: str, source_id: int | str, transaction_type: str
    ) -> bool:
        """Remove the row for an idempotency key.

        Returns:
            True if a row was removed
        """
        self._check_type(transaction_type)
        return self.db.delete_transaction_source(
            source_module, source_table, str(source_id), transaction_type
        )

    def list_for_module(self, source_module: Optional[str] = None) -> list[TransactionSource]:
        """List source rows for operator reporting."""
        return self.db.list_transaction_sources(source_module=source_module)
