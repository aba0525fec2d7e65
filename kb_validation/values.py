"""
Helpers for reading and comparing field values.

Data records are either mappings or plain objects. Values follow the loose
typing rules of HTML form data: numbers may arrive as strings, and the
numeric zero is a real value rather than an empty one.
"""

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Union

# Leading and trailing whitespace is tolerated, as form input often has it.
_NUMERIC_RE = re.compile(
    r"[ \t\n\r\v\f]*[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[ \t\n\r\v\f]*"
)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def get_value(data: Any, field: str) -> Any:
    """Read a field from a mapping or an object; missing fields are None."""
    if data is None:
        return None
    if isinstance(data, Mapping):
        return data.get(field)
    return getattr(data, field, None)


def set_value(data: Any, field: str, value: Any) -> None:
    """Write a field onto a mapping or an object."""
    if isinstance(data, Mapping):
        data[field] = value
    else:
        setattr(data, field, value)


def is_numeric(value: Any) -> bool:
    """True for numbers and numeric strings such as '12', ' 1.5', '1e3'."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, str):
        return _NUMERIC_RE.fullmatch(value) is not None
    return False


def to_number(value: Any) -> Union[int, float]:
    """
    Convert a numeric value to int or float.

    Raises:
        ValueError: If the value is not numeric
    """
    if not is_numeric(value):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    return float(text)


def to_text(value: Any) -> str:
    """String form of a scalar, the way form data would carry it."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty(value: Any) -> bool:
    """
    Is this value empty?

    None, empty collections and non-numeric values equal to '' are empty.
    False counts as empty. A numeric zero (0, 0.0, '0') is never empty.
    """
    if value is None:
        return True

    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0

    if is_numeric(value):
        return False

    return value is False or value == ""


def field_is_empty(data: Any, field: str) -> bool:
    """Is the named field of this record empty?"""
    return is_empty(get_value(data, field))


def value_kind(value: Any) -> str:
    """A coarse type name for diagnostics."""
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, Mapping):
        return "dict"
    if isinstance(value, (str, int, float, bool, Decimal)):
        return "scalar"
    if callable(value):
        return "callable"
    return "object"


def humanize(phrase: str) -> str:
    """
    Turn a field name into words: 'first_name', 'first-name' and
    'firstName' all become 'first name'.
    """
    phrase = re.sub(r"[\s_-]+", " ", str(phrase)).strip()
    phrase = re.sub(r"(^|[a-z])([A-Z])", r"\1 \2", phrase)
    return phrase.strip().lower()


def snake_case(name: str) -> str:
    """Convert a camelCase rule name to a snake_case function name."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()
