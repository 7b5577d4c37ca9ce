"""Domain layer for parkledger application."""

_SERVICES = {
    "AccountingCatalogService": "parkledger.domain.catalog",
    "CategorySyncService": "parkledger.domain.category_sync",
    "ModuleBindingService": "parkledger.domain.bindings",
    "TransactionSourceLedger": "parkledger.domain.source_ledger",
    "EventIngestor": "parkledger.domain.ingestion",
    "SyncReconciler": "parkledger.domain.reconciler",
}

__all__ = list(_SERVICES)


# Services are imported lazily: the database layer imports domain.entities,
# and the services import the database layer.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
