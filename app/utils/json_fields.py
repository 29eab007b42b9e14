"""
Helpers for values the data layer returns either decoded or JSON-encoded.

Stored procedures hand back JSON columns as strings on some drivers and as
already-parsed objects on others. Everything downstream of `decode_json_field`
only ever sees parsed values.
"""
import json
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from app.domain.exceptions import PartialAssemblyError


_CALENDAR_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def decode_json_field(
    field: str,
    value: Any,
    expected_type: type,
    default_factory: Callable[[], Any],
) -> Any:
    """
    Normalize a string-or-structured field to a parsed value.

    Args:
        field: Field name, used in error reports
        value: Raw value from the row (may be absent, None, str, or parsed)
        expected_type: Type the parsed value must have (dict or list)
        default_factory: Builds the empty default

    Returns:
        The parsed value, or the default when the value is absent

    Raises:
        PartialAssemblyError: If the value is present but malformed
    """
    if value is None:
        return default_factory()

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")

    if isinstance(value, str):
        if not value.strip():
            return default_factory()
        try:
            value = json.loads(value)
        except ValueError as e:
            raise PartialAssemblyError(field, f"invalid JSON ({e})")
        if value is None:
            return default_factory()

    if not isinstance(value, expected_type):
        raise PartialAssemblyError(
            field,
            f"expected {expected_type.__name__}, got {type(value).__name__}",
        )
    return value


def to_calendar_date(value: Any) -> Optional[str]:
    """
    Normalize a date-ish value to 'YYYY-MM-DD'.

    Returns None for absent values and for strings that do not start with
    a calendar date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    match = _CALENDAR_DATE.match(str(value).strip())
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups())).isoformat()
    except ValueError:
        return None


def to_timestamp_string(value: Any) -> Optional[str]:
    """Render datetimes as ISO strings; strings pass through untouched."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def to_plain_number(value: Any) -> Any:
    """Decimal columns become floats so they serialize as JSON numbers."""
    if isinstance(value, Decimal):
        return float(value)
    return value


def strip_public_url(reference: Optional[str]) -> Optional[str]:
    """
    Reduce a stored image reference to its bare object key.

    Older rows hold a full public URL; newer rows hold the key itself.
    Anything that is not a string has no usable key.
    """
    if not isinstance(reference, str):
        return None
    if not reference:
        return reference
    parsed = urlparse(reference)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return parsed.path.lstrip("/")
    return reference
