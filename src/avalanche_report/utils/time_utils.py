"""Timestamp helpers.

Every timestamp stored in the database uses one text form: ISO 8601 in
UTC with exactly three fractional digits, e.g.
``2023-02-07T15:00:00.000Z``. Rows sort and compare correctly as text.
"""

from datetime import UTC
from datetime import datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)

def format_datetime(value: datetime) -> str:
    """Format an aware datetime in the stored text form."""
    if value.tzinfo is None:
        raise ValueError("datetime must be timezone aware")
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

def parse_datetime(value: str) -> datetime:
    """Parse a stored timestamp (or any ISO 8601 string with an offset)."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no offset")
    return parsed.astimezone(UTC)
