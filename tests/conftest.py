"""Shared pytest fixtures for parkledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from parkledger.database.factories import create_sqlite_database
from parkledger.domain.bindings import ModuleBindingService
from parkledger.domain.catalog import AccountingCatalogService
from parkledger.domain.category_sync import CategorySyncService
from parkledger.domain.entities import FinancialData, FinancialImpactEvent
from parkledger.domain.ingestion import EventIngestor
from parkledger.domain.source_ledger import TransactionSourceLedger
from parkledger.logging_config import reset_logging


# Small chart of accounts: income under 4, expenses under 5, plus rows the
# sync must ignore.
SAMPLE_CATALOG = [
    ("1", "Assets", "Asset"),
    ("1.1", "Cash", "Asset"),
    ("4", "Income", "Income"),
    ("4.1", "Concession income", "Income"),
    ("4.1.1", "Concession rent", "Income"),
    ("4.2", "Event income", "Income"),
    ("5", "Expenses", "Expense"),
    ("5.1", "Personnel", "Expense"),
    ("5.1.1", "Salaries", "Expense"),
    ("5.2", "Maintenance", "Expense"),
]


@pytest.fixture(autouse=True)
def clean_logging():
    """Leave the parkledger loggers propagating to root so caplog sees them."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def db_factory(temp_db):
    """Open fresh Database objects on the temporary database file."""
    opened = []

    def factory():
        db = create_sqlite_database(database_path=temp_db.database_path)
        opened.append(db)
        return db

    yield factory

    for db in opened:
        db.disconnect()


@pytest.fixture
def catalog_service(temp_db):
    """Create an AccountingCatalogService with a temporary database."""
    return AccountingCatalogService(temp_db)


@pytest.fixture
def sync_service(temp_db):
    """Create a CategorySyncService with a temporary database."""
    return CategorySyncService(temp_db)


@pytest.fixture
def binding_service(temp_db):
    """Create a ModuleBindingService with a temporary database."""
    return ModuleBindingService(temp_db)


@pytest.fixture
def source_ledger(temp_db):
    """Create a TransactionSourceLedger with a temporary database."""
    return TransactionSourceLedger(temp_db)


@pytest.fixture
def ingestor(temp_db):
    """Create an EventIngestor with a temporary database."""
    return EventIngestor(temp_db)


@pytest.fixture
def sample_catalog(catalog_service):
    """Create the sample chart of accounts and return code -> ID."""
    return {
        code: catalog_service.add_category(code=code, name=name, category_type=category_type)
        for code, name, category_type in SAMPLE_CATALOG
    }


@pytest.fixture
def synced_catalog(sample_catalog, sync_service):
    """Sample catalog with income/expense categories already synced."""
    sync_service.sync_financial_categories()
    return sample_catalog


@pytest.fixture
def seeded_bindings(binding_service):
    """Seed the default module bindings."""
    binding_service.seed_defaults()
    return binding_service


@pytest.fixture
def make_event():
    """Build concession income events, overriding any field."""

    def factory(action="create", **overrides):
        data = {
            "amount": Decimal("1500"),
            "description": "Monthly concession fee",
            "category_code": "CONC-REN",
            "date": date(2025, 1, 1),
        }
        for key in ("amount", "description", "category_code", "date", "reference", "metadata"):
            if key in overrides:
                data[key] = overrides.pop(key)
        fields = {
            "module": "concessions",
            "action": action,
            "entity_type": "concession_contracts",
            "entity_id": 42,
            "transaction_type": "income",
        }
        fields.update(overrides)
        return FinancialImpactEvent(financial_data=FinancialData(**data), **fields)

    return factory


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep a developer's database settings out of the tests."""
    monkeypatch.delenv("PARKLEDGER_DB_URL", raising=False)
    monkeypatch.delenv("PARKLEDGER_DB_PATH", raising=False)
    monkeypatch.delenv("PARKLEDGER_LOG_LEVEL", raising=False)
