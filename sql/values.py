"""
Value kinds accepted by placeholder formatters.

Python values are classified into a closed set of kinds once, and formatters
branch on the kind instead of inspecting types themselves.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """Closed set of value kinds a placeholder can receive."""

    NULL = 'null'
    STRING = 'string'
    NUMBER = 'number'
    LIST = 'list'
    MAPPING = 'mapping'
    RAW = 'raw'


class Raw(str):
    """Already rendered SQL that must be spliced in without escaping.

    Example:
        >>> part = Raw(db.parse("AND foo=?s", foo))
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Raw({str.__repr__(self)})"


def classify(value: Any) -> ValueKind:
    """Return the ValueKind of ``value``.

    Raises:
        TypeError: If the value does not belong to any kind
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Raw):
        return ValueKind.RAW
    if isinstance(value, (str, bytes, datetime, date, time)):
        return ValueKind.STRING
    if isinstance(value, (bool, int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (Sequence, set, frozenset)):
        return ValueKind.LIST
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def type_name(value: Any) -> str:
    """Short human-readable type name used in error messages."""
    try:
        return classify(value).value
    except TypeError:
        return type(value).__name__
