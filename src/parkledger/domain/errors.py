"""Shared domain error messages, error types and integration warnings."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class IntegrationWarning(UserWarning):
    """Non-fatal condition reported by the financial integration layer.

    Warnings are logged and returned to the caller in results. They are
    never raised.
    """

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class DuplicateCreateWarning(IntegrationWarning):
    """A create event arrived for a source entity that is already posted."""


class StaleUpdateWarning(IntegrationWarning):
    """An update event arrived for a source entity that was voided."""


class OrphanCategoryWarning(IntegrationWarning):
    """A finance category lost its backing accounting category."""


class SyncConflictWarning(IntegrationWarning):
    """Accounting categories disagree on the classification of a code."""


class UnknownCategoryWarning(IntegrationWarning):
    """A ledger posting references a category code with no finance category."""


def accounting_category_not_found(code: str) -> str:
    """Return message for missing accounting category."""
    return f"Accounting category '{code}' not found"


def duplicate_accounting_code(code: str) -> str:
    """Return message for duplicate accounting category code."""
    return f"Accounting category with code '{code}' already exists"


def ledger_transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Ledger transaction {transaction_id} not found"


def unknown_source_module(module: str) -> str:
    """Return message for a module that is not a known source module."""
    return f"Unknown source module '{module}'"


def source_key(
    source_module: str, source_table: str, source_id: str, transaction_type: str
) -> str:
    """Return a readable form of an idempotency key."""
    return f"{source_module}/{source_table}/{source_id}/{transaction_type}"
