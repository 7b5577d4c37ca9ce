"""Utility functions for parkledger."""

from parkledger.utils.date_parser import parse_date
from parkledger.utils.amount_parser import parse_amount
from parkledger.utils.resilience import resilient

__all__ = ["parse_date", "parse_amount", "resilient"]
