"""Tests for structured logging."""

import io
import json
import logging
from datetime import date
from decimal import Decimal

from parkledger.logging_config import configure_logging, get_logger


class TestLogging:
    """Tests for configure_logging and StructuredFormatter."""

    def test_logger_namespace(self):
        assert get_logger("ingestion").name == "parkledger.ingestion"

    def test_json_lines_with_extra(self):
        stream = io.StringIO()
        configure_logging(level="INFO", json_format=True, stream=stream)

        get_logger("ingestion").info(
            "Posted %s",
            Decimal("1500.00"),
            extra={"source_module": "concessions", "amount": Decimal("1500.00"), "on": date(2025, 1, 1)},
        )

        payload = json.loads(stream.getvalue().strip())
        assert payload["message"] == "Posted 1500.00"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "parkledger.ingestion"
        assert payload["source_module"] == "concessions"
        assert payload["amount"] == "1500.00"
        assert payload["on"] == "2025-01-01"

    def test_exception_fields(self):
        stream = io.StringIO()
        configure_logging(json_format=True, stream=stream)

        try:
            raise RuntimeError("ledger offline")
        except RuntimeError:
            get_logger("ingestion").exception("Ledger write failed")

        payload = json.loads(stream.getvalue().strip())
        assert payload["exc_type"] == "RuntimeError"
        assert payload["exc_message"] == "ledger offline"
        assert "Traceback" in payload["traceback"]

    def test_plain_format_and_level(self):
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, stream=stream)

        logger = get_logger("category_sync")
        logger.info("hidden")
        logger.warning("Category 5.2 deactivated")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "WARNING parkledger.category_sync: Category 5.2 deactivated" in output

    def test_configure_is_idempotent(self):
        stream = io.StringIO()
        configure_logging(stream=stream)
        configure_logging(stream=stream)

        get_logger("x").warning("once")
        assert stream.getvalue().count("once") == 1
