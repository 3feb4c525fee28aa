"""
WikiAPI Server - Timestamp Utilities

Conversions between the 14-digit storage form (YYYYMMDDHHMMSS, UTC),
ISO 8601 strings used on the wire, and timezone-aware datetimes.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

DB_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
ISO_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_DB_TIMESTAMP_RE = re.compile(r'^\d{14}$')
_ISO_TIMESTAMP_RE = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2}):(\d{2})(?:\.\d+)?(Z|[+-]\d{2}:?\d{2})?$'
)


def Now() -> datetime:
    """Current time in UTC, truncated to whole seconds"""
    return datetime.now(timezone.utc).replace(microsecond=0)


def ToDbTimestamp(value: Union[datetime, str, None] = None) -> str:
    """
    Convert a datetime or supported timestamp string to storage form

    Args:
        value: datetime (naive values are treated as UTC), ISO 8601 or
               14-digit string, or None for the current time

    Returns:
        str: YYYYMMDDHHMMSS

    Raises:
        ValueError: If a string value cannot be parsed
    """
    if value is None:
        value = Now()
    if isinstance(value, str):
        value = ParseTimestamp(value)
        if value is None:
            raise ValueError("Unrecognized timestamp")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DB_TIMESTAMP_FORMAT)


def FromDbTimestamp(value: str) -> datetime:
    """Parse a 14-digit storage timestamp into an aware UTC datetime"""
    return datetime.strptime(value, DB_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def ToIsoTimestamp(value: str) -> str:
    """Render a 14-digit storage timestamp as ISO 8601"""
    return FromDbTimestamp(value).strftime(ISO_TIMESTAMP_FORMAT)


def ParseTimestamp(value: str) -> Optional[datetime]:
    """
    Parse an API timestamp in ISO 8601 or 14-digit form

    Args:
        value: Timestamp string

    Returns:
        datetime: Aware UTC datetime, or None if the value is not a timestamp
    """
    value = value.strip()
    try:
        if _DB_TIMESTAMP_RE.match(value):
            return FromDbTimestamp(value)

        match = _ISO_TIMESTAMP_RE.match(value)
        if not match:
            return None

        year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
        parsed = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
        offset = match.group(7)
        if offset and offset != 'Z':
            # Normalize +HH:MM / +HHMM and shift back to UTC
            sign = 1 if offset[0] == '+' else -1
            digits = offset[1:].replace(':', '')
            delta_minutes = int(digits[:2]) * 60 + int(digits[2:])
            parsed = parsed.replace(tzinfo=None)
            parsed = (parsed - sign * timedelta(minutes=delta_minutes)).replace(tzinfo=timezone.utc)
        return parsed
    except ValueError:
        # Out-of-range month, day, etc.
        return None
