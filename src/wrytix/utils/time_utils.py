"""Timestamp helpers. Stored timestamps are ISO-8601 strings in UTC."""

from datetime import datetime, timezone
from typing import Any, Optional

from wrytix.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_datetime(value: Any, field: str = "date") -> datetime:
    """
    Parse a client- or store-supplied timestamp.

    Accepts datetimes and ISO-8601 strings (a trailing `Z` is allowed). Naive
    values are taken to be UTC.

    Raises:
        ValidationError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid {field} format")
    else:
        raise ValidationError(f"Invalid {field} format")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_datetime(value: Any, field: str = "date") -> Optional[datetime]:
    if value is None or value == "":
        return None
    return parse_datetime(value, field)
