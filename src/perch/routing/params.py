"""Path parameter coercion.

Built-in converters turn a decoded path segment into a typed value for
each declared parameter type. A converter raises ``ValueError`` when the
text is not a valid literal of its type.
"""

import math
import re
from collections.abc import Callable
from datetime import date, datetime, time
from email.utils import parsedate_to_datetime
from typing import Any, TypeAlias

Converter: TypeAlias = Callable[[str], Any]

_INT_RE = re.compile(r"^[+-]?[0-9]+\Z")
_NUMBER_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")
_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}\Z")
_TIME_RE = re.compile(r"^[0-9]{2}:[0-9]{2}:[0-9]{2}(?:\.[0-9]{1,6})?\Z")
_LOCAL_DATETIME_RE = re.compile(
    r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(?:\.[0-9]{1,6})?\Z"
)
_RFC3339_RE = re.compile(
    r"^([0-9]{4}-[0-9]{2}-[0-9]{2})[Tt ]([0-9]{2}:[0-9]{2}:[0-9]{2})(\.[0-9]+)?"
    r"([Zz]|[+-][0-9]{2}:[0-9]{2})\Z"
)


def to_number(value: str) -> int | float:
    """Finite numeric literal. Integral literals stay ``int``."""
    if _INT_RE.match(value):
        return int(value)
    if not _NUMBER_RE.match(value):
        msg = f"Not a number: {value!r}"
        raise ValueError(msg)
    number = float(value)
    if not math.isfinite(number):
        msg = f"Not a finite number: {value!r}"
        raise ValueError(msg)
    return number


def to_integer(value: str) -> int:
    """Numeric literal without a fractional part (``"12.0"`` is 12)."""
    number = to_number(value)
    if isinstance(number, float):
        if not number.is_integer():
            msg = f"Not an integer: {value!r}"
            raise ValueError(msg)
        return int(number)
    return number


def to_boolean(value: str) -> bool:
    """Exactly ``true`` or ``false``."""
    if value == "true":
        return True
    if value == "false":
        return False
    msg = f"Not a boolean: {value!r}"
    raise ValueError(msg)


def to_date(value: str) -> date:
    """ISO calendar date, ``YYYY-MM-DD``."""
    if not _DATE_RE.match(value):
        msg = f"Not a date: {value!r}"
        raise ValueError(msg)
    return date.fromisoformat(value)


def to_time(value: str) -> time:
    """Time of day without offset, ``hh:mm:ss[.ffffff]``."""
    if not _TIME_RE.match(value):
        msg = f"Not a time: {value!r}"
        raise ValueError(msg)
    return time.fromisoformat(value)


def to_local_datetime(value: str) -> datetime:
    """Date and time without offset, ``YYYY-MM-DDThh:mm:ss[.ffffff]``."""
    if not _LOCAL_DATETIME_RE.match(value):
        msg = f"Not a local datetime: {value!r}"
        raise ValueError(msg)
    return datetime.fromisoformat(value)


def to_datetime(value: str) -> datetime:
    """RFC 3339 timestamp with offset. Returns an aware ``datetime``."""
    match = _RFC3339_RE.match(value)
    if match is None:
        msg = f"Not an RFC 3339 datetime: {value!r}"
        raise ValueError(msg)
    day, clock, fraction, offset = match.groups()
    fraction = (fraction or "")[:7]
    if offset in ("Z", "z"):
        offset = "+00:00"
    return datetime.fromisoformat(f"{day}T{clock}{fraction}{offset}")


def to_http_date(value: str) -> datetime:
    """RFC 2616 date, e.g. ``Sun, 06 Nov 1994 08:49:37 GMT``."""
    try:
        return parsedate_to_datetime(value)
    except (TypeError, IndexError) as exc:
        msg = f"Not an RFC 2616 date: {value!r}"
        raise ValueError(msg) from exc


# Canonical type name -> converter
CONVERTERS: dict[str, Converter] = {
    "string": str,
    "any": str,
    "number": to_number,
    "integer": to_integer,
    "boolean": to_boolean,
    "date-only": to_date,
    "time-only": to_time,
    "datetime-only": to_local_datetime,
    "datetime": to_datetime,
}

# Local names used by URI-qualified type vocabularies
TYPE_ALIASES: dict[str, str] = {
    "float": "number",
    "double": "number",
    "int": "integer",
    "long": "integer",
    "dateTime": "datetime",
    "dateTimeOnly": "datetime-only",
    "time": "time-only",
}


def resolve_converter(
    type_name: str,
    *,
    fmt: str | None = None,
    raml_version: str = "1.0",
) -> Converter | None:
    """Return the converter for *type_name*, or ``None`` if unknown.

    ``date`` is an RFC 2616 timestamp under the 0.8 dialect and a
    calendar date under 1.0. ``datetime`` switches to RFC 2616 when
    *fmt* is ``rfc2616``.
    """
    name = TYPE_ALIASES.get(type_name, type_name)
    if name == "date":
        return to_http_date if raml_version == "0.8" else to_date
    if name == "datetime" and fmt is not None and fmt.lower() == "rfc2616":
        return to_http_date
    return CONVERTERS.get(name)


def convert_param(
    value: str,
    type_name: str,
    *,
    fmt: str | None = None,
    raml_version: str = "1.0",
) -> Any:
    """Convert a decoded path parameter to *type_name*.

    Raises ``ValueError`` if the string cannot be converted.
    Raises ``KeyError`` if *type_name* is not a known type.
    """
    converter = resolve_converter(type_name, fmt=fmt, raml_version=raml_version)
    if converter is None:
        raise KeyError(type_name)
    return converter(value)
