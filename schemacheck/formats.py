"""Best-effort recognizers for the "format" keyword.

Each checker receives a string and returns True when it looks like the named
format. Formats without a checker are annotations only.
"""

import datetime
import ipaddress
import re
import uuid
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

_DATE_REGEX = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_TIME_REGEX = re.compile(
    r'^(\d{2}):(\d{2}):(\d{2})(?:\.\d+)?(?:[Zz]|([+\-])(\d{2}):(\d{2}))$'
)
_EMAIL_REGEX = re.compile(r'^[^@\s]+@[^@\s]+$')
_HOSTNAME_LABEL_REGEX = re.compile(r'^[A-Za-z0-9](?:[A-Za-z0-9\-]{0,61}[A-Za-z0-9])?$')
_IPV4_REGEX = re.compile(r'^(?:0|[1-9]\d{0,2})(?:\.(?:0|[1-9]\d{0,2})){3}$')
_JSONPOINTER_REGEX = re.compile(r'^(?:/(?:[^~/]|~[01])*)*$')

FormatFunction = Callable[[str], bool]


def is_date(value: str) -> bool:
    match = _DATE_REGEX.match(value)
    if not match:
        return False
    try:
        datetime.date(*(int(part) for part in match.groups()))
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    match = _TIME_REGEX.match(value)
    if not match:
        return False
    hour, minute, second = (int(part) for part in match.groups()[:3])
    # second 60 is a leap second
    if hour > 23 or minute > 59 or second > 60:
        return False
    if match.group(4):
        offset_hour, offset_minute = int(match.group(5)), int(match.group(6))
        if offset_hour > 23 or offset_minute > 59:
            return False
    return True


def is_date_time(value: str) -> bool:
    """RFC 3339 date-time, date and time separated by T (either case)."""
    date, separator, time = value.partition('T') if 'T' in value else value.partition('t')
    return bool(separator) and is_date(date) and is_time(time)


def is_email(value: str) -> bool:
    if not _EMAIL_REGEX.match(value):
        return False
    domain = value.rsplit('@', 1)[1]
    return is_hostname(domain) or (domain.startswith('[') and domain.endswith(']'))


def is_hostname(value: str) -> bool:
    hostname = value[:-1] if value.endswith('.') else value
    if not hostname or len(hostname) > 253:
        return False
    return all(_HOSTNAME_LABEL_REGEX.match(label) for label in hostname.split('.'))


def is_ipv4(value: str) -> bool:
    if not _IPV4_REGEX.match(value):
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    if '%' in value:
        return False
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def is_uri(value: str) -> bool:
    """Absolute URI: a scheme is required and whitespace is not allowed."""
    if any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path or parsed.query)


def is_uri_reference(value: str) -> bool:
    if any(ch.isspace() for ch in value):
        return False
    try:
        urlparse(value)
    except ValueError:
        return False
    return True


def is_json_pointer(value: str) -> bool:
    return bool(_JSONPOINTER_REGEX.match(value))


def is_regex(value: str) -> bool:
    try:
        re.compile(value)
    except re.error:
        return False
    return True


def is_uuid(value: str) -> bool:
    if len(value) != 36:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class FormatChecker:
    """Registry of format name -> recognizer."""

    DEFAULT_CHECKERS: Dict[str, FormatFunction] = {
        'date-time': is_date_time,
        'date': is_date,
        'time': is_time,
        'email': is_email,
        'hostname': is_hostname,
        'ipv4': is_ipv4,
        'ipv6': is_ipv6,
        'uri': is_uri,
        'uri-reference': is_uri_reference,
        'json-pointer': is_json_pointer,
        'regex': is_regex,
        'uuid': is_uuid,
    }

    def __init__(self, checkers: Optional[Dict[str, FormatFunction]] = None):
        self.checkers = dict(self.DEFAULT_CHECKERS if checkers is None else checkers)

    def register(self, name: str) -> Callable[[FormatFunction], FormatFunction]:
        """Decorator registering a recognizer under a format name."""
        def decorator(func: FormatFunction) -> FormatFunction:
            self.checkers[name] = func
            return func
        return decorator

    def knows(self, name: str) -> bool:
        return name in self.checkers

    def conforms(self, name: str, value: str) -> Optional[bool]:
        """Checks a string against a format.

        Returns:
            True or False for known formats, None when the format is unknown
        """
        checker = self.checkers.get(name)
        if checker is None:
            return None
        return checker(value)
