"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from dateutil import parser as date_parser


def parse_date(value: str | date | datetime) -> date:
    """Parse an event or command-line date into a date object.

    Supports:
    - date and datetime objects (datetimes are truncated to their date)
    - Absolute dates: "2025-01-01", "January 1, 2025", "2025-01-01T10:30:00Z"
    - Relative dates: "today", "yesterday", "tomorrow"

    Args:
        value: Date value

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Could not parse date {value!r}")

    date_str = value.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.isoparse(value.strip()).date()
    except ValueError:
        pass

    try:
        return date_parser.parse(value.strip()).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def month_key(value: date) -> str:
    """Return the YYYYMM form of a date used in ledger references."""
    return f"{value.year:04d}{value.month:02d}"
