"""Tests for parkledger CLI commands."""

import json

import pytest
from parkledger.cli.main import cli


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


EMIT_CREATE = [
    "event",
    "emit",
    "--module",
    "concessions",
    "--action",
    "create",
    "--entity-type",
    "concession_contracts",
    "--entity-id",
    "42",
    "--type",
    "income",
    "--amount",
    "1500",
    "--description",
    "Monthly concession fee",
    "--category",
    "CONC-REN",
    "--date",
    "2025-01-01",
]


class TestCatalogCommands:
    """Tests for catalog commands."""

    def test_add_and_list(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "catalog", "add", "4", "Income", "--type", "Income")
        assert result.exit_code == 0
        assert "Created accounting category 4 'Income'" in result.output

        result = _invoke(cli_runner, temp_db, "catalog", "list")
        assert result.exit_code == 0
        assert "Income" in result.output
        assert "credit" in result.output

    def test_add_invalid_code(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "catalog", "add", "4.x", "Bad", "--type", "Income")
        assert result.exit_code == 1
        assert "Error: Invalid accounting code" in result.output

    def test_tree(self, cli_runner, temp_db, sample_catalog):
        result = _invoke(cli_runner, temp_db, "catalog", "list", "--tree")
        assert result.exit_code == 0
        assert "    4.1.1 Concession rent (Income)" in result.output

    def test_deactivate_missing(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "catalog", "deactivate", "9")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_deactivate_and_reactivate(self, cli_runner, temp_db, sample_catalog):
        result = _invoke(cli_runner, temp_db, "catalog", "deactivate", "5.2")
        assert result.exit_code == 0
        result = _invoke(cli_runner, temp_db, "catalog", "reactivate", "5.2")
        assert result.exit_code == 0
        assert "Reactivated accounting category 5.2" in result.output

    def test_load(self, cli_runner, temp_db, fixtures_dir):
        result = _invoke(cli_runner, temp_db, "catalog", "load", str(fixtures_dir / "catalog.yaml"))
        assert result.exit_code == 0
        assert "Loaded 6 accounting categories" in result.output


class TestCategoriesCommands:
    """Tests for categories commands."""

    def test_sync_list_stats_status(self, cli_runner, temp_db, sample_catalog):
        result = _invoke(cli_runner, temp_db, "categories", "status")
        assert result.exit_code == 1
        assert "Out of sync" in result.output

        result = _invoke(cli_runner, temp_db, "categories", "sync")
        assert result.exit_code == 0
        assert "Synced 4 income and 4 expense categories from 8 accounting categories" in result.output

        result = _invoke(cli_runner, temp_db, "categories", "list", "--type", "income")
        assert result.exit_code == 0
        assert "Concession rent" in result.output
        assert "Salaries" not in result.output

        result = _invoke(cli_runner, temp_db, "categories", "stats")
        assert result.exit_code == 0
        assert "Income categories:     4" in result.output

        result = _invoke(cli_runner, temp_db, "categories", "status")
        assert result.exit_code == 0
        assert "In sync" in result.output

    def test_sync_reports_orphans(self, cli_runner, temp_db, catalog_service, synced_catalog):
        catalog_service.deactivate_category("4.2")

        result = _invoke(cli_runner, temp_db, "categories", "sync")

        assert result.exit_code == 0
        assert "Warning: Income category 4.2 deactivated" in result.output

    def test_list_empty(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "categories", "list")
        assert "No categories found" in result.output


class TestBindingCommands:
    """Tests for binding commands."""

    def test_seed_and_list(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "binding", "seed")
        assert result.exit_code == 0
        assert "Seeded" in result.output

        result = _invoke(cli_runner, temp_db, "binding", "seed")
        assert "already exist" in result.output

        result = _invoke(cli_runner, temp_db, "binding", "list", "--module", "hr")
        assert result.exit_code == 0
        assert "PERS-SAL" in result.output
        assert "CONC-REN" not in result.output

    def test_set_and_remove(self, cli_runner, temp_db):
        result = _invoke(
            cli_runner, temp_db, "binding", "set", "events", "EVEN-PAT", "--type", "income", "--no-auto"
        )
        assert result.exit_code == 0
        assert "Bound events income to EVEN-PAT" in result.output

        result = _invoke(cli_runner, temp_db, "binding", "list")
        assert "0  no" in result.output

        result = _invoke(cli_runner, temp_db, "binding", "remove", "events", "EVEN-PAT", "--type", "income")
        assert result.exit_code == 0

        result = _invoke(cli_runner, temp_db, "binding", "remove", "events", "EVEN-PAT", "--type", "income")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_module_rejected(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "binding", "set", "parking", "X", "--type", "income")
        assert result.exit_code != 0

    def test_load(self, cli_runner, temp_db, fixtures_dir):
        result = _invoke(cli_runner, temp_db, "binding", "load", str(fixtures_dir / "bindings.yaml"))
        assert result.exit_code == 0
        assert "Loaded 3 bindings" in result.output


class TestEventCommands:
    """Tests for event commands."""

    def test_emit_lifecycle(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, *EMIT_CREATE)
        assert result.exit_code == 0
        assert "created: ledger transaction 1 (CONC-202501-42)" in result.output

        update = list(EMIT_CREATE)
        update[update.index("create")] = "update"
        update[update.index("1500")] = "1800"
        result = _invoke(cli_runner, temp_db, *update)
        assert result.exit_code == 0
        assert "updated: ledger transaction 1" in result.output

        result = _invoke(cli_runner, temp_db, "ledger", "list", "--module", "concessions")
        assert "$1,800.00" in result.output

        result = _invoke(
            cli_runner,
            temp_db,
            "event",
            "emit",
            "--module",
            "concessions",
            "--action",
            "delete",
            "--entity-type",
            "concession_contracts",
            "--entity-id",
            "42",
            "--type",
            "income",
        )
        assert result.exit_code == 0
        assert "deleted" in result.output

        result = _invoke(cli_runner, temp_db, "ledger", "list")
        assert "No ledger transactions found." in result.output

    def test_emit_duplicate_create_warns(self, cli_runner, temp_db):
        _invoke(cli_runner, temp_db, *EMIT_CREATE)
        result = _invoke(cli_runner, temp_db, *EMIT_CREATE)

        assert result.exit_code == 0
        assert "Warning: Duplicate create" in result.output
        assert "updated" in result.output

    def test_emit_invalid_amount(self, cli_runner, temp_db):
        args = list(EMIT_CREATE)
        args[args.index("1500")] = "0"

        result = _invoke(cli_runner, temp_db, *args)

        assert result.exit_code == 1
        assert "Error: Invalid financial data" in result.output

    def test_apply_file(self, cli_runner, temp_db, fixtures_dir):
        result = _invoke(cli_runner, temp_db, "event", "apply", str(fixtures_dir / "events.json"))

        assert result.exit_code == 0
        assert "created" in result.output
        assert "updated" in result.output

        result = _invoke(cli_runner, temp_db, "ledger", "sources")
        assert "concession_contracts" in result.output
        assert "$1,800.00" in result.output

    def test_apply_invalid_json(self, cli_runner, temp_db, tmp_path):
        path = tmp_path / "events.json"
        path.write_text("{not json")

        result = _invoke(cli_runner, temp_db, "event", "apply", str(path))

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_apply_stdin(self, cli_runner, temp_db):
        payload = {
            "module": "trees",
            "action": "create",
            "entityType": "tree_maintenance",
            "entityId": 7,
            "transactionType": "expense",
            "financialData": {
                "amount": 350,
                "description": "Pruning",
                "categoryCode": "ARBO-MAN",
                "date": "2025-03-10",
            },
        }
        result = cli_runner.invoke(
            cli, ["--db-path", temp_db.database_path, "event", "apply", "-"], input=json.dumps(payload)
        )

        assert result.exit_code == 0
        assert "ARBO-202503-7" in result.output


class TestLedgerCommands:
    """Tests for ledger commands."""

    def test_empty(self, cli_runner, temp_db):
        assert "No ledger transactions found." in _invoke(cli_runner, temp_db, "ledger", "list").output
        assert "No transaction sources found." in _invoke(cli_runner, temp_db, "ledger", "sources").output

    def test_type_filter(self, cli_runner, temp_db):
        _invoke(cli_runner, temp_db, *EMIT_CREATE)

        result = _invoke(cli_runner, temp_db, "ledger", "list", "--type", "expense")
        assert "No ledger transactions found." in result.output

        result = _invoke(cli_runner, temp_db, "ledger", "list", "--type", "income")
        assert "Monthly concession fee" in result.output
        assert "Total: 1 transaction(s)" in result.output


class TestReconcileCommand:
    """Tests for the reconcile command."""

    def test_reconcile_once(self, cli_runner, temp_db, sample_catalog):
        result = _invoke(cli_runner, temp_db, "reconcile")

        assert result.exit_code == 0
        assert "4 income, 4 expense from 8 accounting categories (in sync)" in result.output

    def test_reconcile_iterations(self, cli_runner, temp_db, sample_catalog):
        result = _invoke(cli_runner, temp_db, "reconcile", "--interval", "0.01", "--iterations", "2")

        assert result.exit_code == 0
        assert result.output.count("(in sync)") == 2


class TestMainGroup:
    """Tests for the top-level group."""

    def test_help_does_not_open_database(self, cli_runner, tmp_path):
        db_path = tmp_path / "never.db"
        result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])

        assert result.exit_code == 0
        assert "catalog" in result.output
        assert not db_path.exists()

    def test_db_path_from_environment(self, cli_runner, temp_db, monkeypatch):
        monkeypatch.setenv("PARKLEDGER_DB_PATH", temp_db.database_path)

        result = cli_runner.invoke(cli, ["binding", "seed"])

        assert result.exit_code == 0
        assert len(temp_db.list_bindings()) > 0

    def test_db_url_option(self, cli_runner, tmp_path):
        url = f"sqlite:///{tmp_path / 'url.db'}"

        result = cli_runner.invoke(cli, ["--db-url", url, "binding", "seed"])

        assert result.exit_code == 0
        assert (tmp_path / "url.db").exists()

    def test_json_logs(self, cli_runner, temp_db):
        result = cli_runner.invoke(
            cli,
            ["--db-path", temp_db.database_path, "--log-level", "INFO", "--json-logs", "binding", "seed"],
        )
        assert result.exit_code == 0
