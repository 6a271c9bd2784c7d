"""Date helpers for created_at timestamps stored as ISO-8601 strings."""
from datetime import date, datetime
from typing import Optional, Union

from swiftsale.exceptions import ValidationError


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO timestamp ('Z' suffix accepted). Returns None if invalid."""
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def record_date(value) -> Optional[date]:
    """Calendar date of a timestamp, in local time for aware values."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Accept a date, a datetime or a 'YYYY-MM-DD' string."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f'Invalid date: {value!r} (expected YYYY-MM-DD)', payload={'value': str(value)})
