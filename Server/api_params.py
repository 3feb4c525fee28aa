"""
WikiAPI Server - API Parameter Parsing

Shared parsing for request parameters that FastAPI's own validation
does not cover: pipe-separated multi-values, 'max' limits, continuation
values, timestamps and user names.
"""

import calendar
import ipaddress
import re
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from api_errors import ApiWarnings, DieWithError
from models.database import User
from timestamps import ParseTimestamp, ToDbTimestamp
from titles import UcFirst

# Result limits; the higher pair applies to callers with 'apihighlimits'
LIMIT_BIG1 = 500
LIMIT_BIG2 = 5000


def SplitMultiValue(value: Optional[str]) -> Optional[List[str]]:
    """
    Split a pipe-separated multi-value parameter

    Returns:
        None when the parameter was not supplied, otherwise the list of
        values (an empty string yields an empty list)
    """
    if value is None:
        return None
    if value == "":
        return []
    return value.split('|')


def FilterAllowedValues(param: str, values: List[str], allowed: Sequence[str],
                        warnings: ApiWarnings) -> List[str]:
    """
    Drop values outside the allowed set, warning about each one

    Duplicates are removed; input order is preserved.
    """
    result = []
    for value in values:
        if value not in allowed:
            warnings.Add("unrecognizedvalues", f"Unrecognized value for parameter '{param}': {value}")
        elif value not in result:
            result.append(value)
    return result


def ParseLimit(param: str, value: Optional[str], default: int, high_limits: bool,
               warnings: ApiWarnings) -> int:
    """
    Parse a result limit

    Args:
        param: Parameter name, for messages
        value: Raw value; an integer or 'max'
        default: Limit used when value is None
        high_limits: Whether the caller may use the higher maximum
        warnings: Warning collector for clamped values

    Returns:
        int: Limit between 1 and the caller's maximum
    """
    maximum = LIMIT_BIG2 if high_limits else LIMIT_BIG1
    if value is None:
        return default
    if value == "max":
        return maximum
    if not re.fullmatch(r'[+-]?\d+', value.strip()):
        DieWithError("badinteger", f"Invalid value \"{value}\" for integer parameter '{param}'.")

    limit = int(value)
    if limit < 1:
        warnings.Add("integeroutofrange", f"The value \"{limit}\" for parameter '{param}' must be no less than 1.")
        return 1
    if limit > maximum:
        warnings.Add(
            "integeroutofrange",
            f"The value \"{limit}\" for parameter '{param}' must be no greater than {maximum}."
        )
        return maximum
    return limit


def ParseTimestampParam(param: str, value: Optional[str]) -> Optional[str]:
    """Parse a timestamp parameter to storage form, or die with badtimestamp"""
    if value is None:
        return None
    parsed = ParseTimestamp(value)
    if parsed is None:
        DieWithError("badtimestamp", f"Invalid value \"{value}\" for timestamp parameter '{param}'.")
    return ToDbTimestamp(parsed)


def ParseContinueParam(value: str, types: Sequence[str]) -> List:
    """
    Split a continuation value into typed parts

    Args:
        value: Raw 'continue' parameter
        types: One entry per expected part: 'string', 'int' or 'timestamp'

    Returns:
        list: Parsed parts; 'int' parts become int, 'timestamp' parts stay
              14-digit strings

    Raises:
        HTTPException: badcontinue when the value does not match
    """
    parts = value.split('|')
    if len(parts) != len(types):
        DieWithError("badcontinue", "Invalid continue param. You should pass the original value returned by the previous query.")

    parsed = []
    for part, part_type in zip(parts, types):
        if part_type == 'int':
            if not re.fullmatch(r'-?\d+', part) or str(int(part)) != part:
                DieWithError("badcontinue", "Invalid continue param. You should pass the original value returned by the previous query.")
            parsed.append(int(part))
        elif part_type == 'timestamp':
            if not re.fullmatch(r'\d{14}', part):
                DieWithError("badcontinue", "Invalid continue param. You should pass the original value returned by the previous query.")
            parsed.append(part)
        else:
            parsed.append(part)
    return parsed


def IsIpAddress(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def NormalizeUserName(value: str) -> Optional[str]:
    """
    Normalize a user name parameter

    IP addresses are returned uppercased (IPv6 canonical form), names get
    spaces instead of underscores and an uppercase first letter.

    Returns:
        str: Normalized name, or None if the value is not a usable name
    """
    name = re.sub(r'[ _]+', ' ', value).strip()
    if not name:
        return None
    if IsIpAddress(name):
        return str(ipaddress.ip_address(name)).upper()
    if re.search(r'[#<>\[\]|{}/@:]', name):
        return None
    return UcFirst(name)


def ParseUserParam(param: str, value: Optional[str], session) -> Optional[str]:
    """
    Resolve a user parameter ('Name', IP address or '#<id>') to a user name

    Args:
        param: Parameter name, for messages
        value: Raw value
        session: Database session used to resolve '#<id>'

    Returns:
        str: Normalized user name, or None when value is None
    """
    if value is None:
        return None

    if re.fullmatch(r'#\d+', value):
        user = session.query(User).filter(User.user_id == int(value[1:])).first()
        if not user:
            DieWithError("baduser", f"Invalid value \"{value}\" for user parameter '{param}'.")
        return user.username

    name = NormalizeUserName(value)
    if name is None:
        DieWithError("baduser", f"Invalid value \"{value}\" for user parameter '{param}'.")
    return name


def ParseDuration(value: str) -> Optional[Tuple[int, str]]:
    """
    Parse a relative duration like '1 week' or '6 months'

    Returns:
        tuple: (amount, unit) with unit singular, or None if not a duration
    """
    match = re.fullmatch(r'\s*(\d+)\s*(second|minute|hour|day|week|month|year)s?\s*', value.lower())
    if not match:
        return None
    return int(match.group(1)), match.group(2)


def AddDuration(start: datetime, amount: int, unit: str) -> datetime:
    """Add a calendar duration to a datetime (months and years are calendar based)"""
    if unit in ('month', 'year'):
        months = amount * (12 if unit == 'year' else 1)
        month_index = start.month - 1 + months
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        day = min(start.day, calendar.monthrange(year, month)[1])
        return start.replace(year=year, month=month, day=day)

    seconds_per_unit = {'second': 1, 'minute': 60, 'hour': 3600, 'day': 86400, 'week': 604800}
    return start + timedelta(seconds=amount * seconds_per_unit[unit])


def ValidateChoice(param: str, value: str, choices: Sequence[str]) -> str:
    """Die with badvalue unless value is one of the choices"""
    if value not in choices:
        DieWithError(
            "badvalue",
            f"Unrecognized value for parameter '{param}': {value}. Must be one of: {', '.join(choices)}."
        )
    return value
