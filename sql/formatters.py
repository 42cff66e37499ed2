"""
=========================
Placeholder formatters.
=========================

One formatting rule per placeholder kind. Each formatter takes a raw value
and the active dialect and returns an SQL-safe fragment, or raises a
FormatError subclass describing why the value was rejected.

Functions:
    format_string: ?s - quoted literal or NULL
    format_integer: ?i - base-10 integer text or NULL
    format_identifier: ?n - quoted identifier
    format_in_list: ?a - 'a','b','c' (NULL when empty)
    format_set_clause: ?u - `k`='v',`k2`='v2'
    format_multi_row: ?m - ('a','b'),('c','d')
    format_key_value_rows: ?k - (`c1`,`c2`) VALUES ('a','b'),...
    format_raw: ?p - verbatim
    format_value: dispatch by PlaceholderKind

Example:
    >>> from sql.dialects import MYSQL
    >>> from sql.formatters import format_set_clause
    >>> format_set_clause({'name': 'Bob', 'age': 5}, MYSQL)
    "`name`='Bob',`age`='5'"
"""

import math
import re
from datetime import date, datetime, time
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Callable, Dict

from sql.dialects import Dialect
from sql.errors import EmptyIdentifier, InconsistentRows, InvalidFormat
from sql.scanner import PlaceholderKind
from sql.values import ValueKind, classify, type_name

NULL = 'NULL'

# Matches the default int/str conversion limit of current interpreters
MAX_INTEGER_DIGITS = 4300

_NUMERIC_RE = re.compile(r'\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*\Z')


def _kind_of(value: Any, label: str, sigil: str) -> ValueKind:
    try:
        return classify(value)
    except TypeError:
        raise InvalidFormat(
            label, value, f"{label.capitalize()} ({sigil}) placeholder got unsupported type {type(value).__name__}"
        ) from None


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, datetime):
        return value.isoformat(sep=' ')
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


def format_string(value: Any, dialect: Dialect) -> str:
    """Format a ?s value as an escaped, single-quoted literal."""
    kind = _kind_of(value, 'string', '?s')
    if kind is ValueKind.NULL:
        return NULL
    if kind in (ValueKind.LIST, ValueKind.MAPPING):
        raise InvalidFormat('string', value, f"String (?s) placeholder expects scalar value, {kind.value} given")
    if isinstance(value, int) and not isinstance(value, bool):
        return dialect.quote_literal(_int_text(value, 'string', '?s'))
    try:
        text = _scalar_text(value)
    except UnicodeDecodeError as e:
        raise InvalidFormat('string', value, f"String (?s) placeholder got undecodable bytes: {e}") from None
    return dialect.quote_literal(text)


def _too_long(value: Any, label: str, sigil: str) -> InvalidFormat:
    return InvalidFormat(
        label, value,
        f"{label.capitalize()} ({sigil}) placeholder value exceeds {MAX_INTEGER_DIGITS} digits"
    )


def _int_text(value: int, label: str, sigil: str) -> str:
    try:
        text = str(value)
    except ValueError:
        raise _too_long(value, label, sigil) from None
    if len(text.lstrip('-')) > MAX_INTEGER_DIGITS:
        raise _too_long(value, label, sigil)
    return text


def _truncated_decimal(value: Decimal) -> str:
    """Integer text of a finite Decimal, truncated toward zero."""
    if not value:
        return '0'
    if value.adjusted() >= MAX_INTEGER_DIGITS:
        raise _too_long(value, 'integer', '?i')
    if value.adjusted() < 0:
        return '0'
    return str(int(value.to_integral_value(rounding=ROUND_DOWN)))


def format_integer(value: Any, dialect: Dialect) -> str:
    """Format a ?i value as base-10 integer text.

    Floats and decimal strings are truncated toward zero. Very large floats
    may already have lost precision before they get here; that is accepted.
    Magnitudes above MAX_INTEGER_DIGITS digits are rejected before the
    integer is expanded.
    """
    kind = _kind_of(value, 'integer', '?i')
    if kind is ValueKind.NULL:
        return NULL

    if kind is ValueKind.NUMBER:
        if isinstance(value, bool):
            return '1' if value else '0'
        if isinstance(value, int):
            return _int_text(value, 'integer', '?i')
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidFormat('integer', value, f"Integer (?i) placeholder expects finite value, {value!r} given")
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise InvalidFormat('integer', value, f"Integer (?i) placeholder expects finite value, {value!r} given")
            return _truncated_decimal(value)
        return str(int(value))

    if isinstance(value, str) and _NUMERIC_RE.match(value):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            number = None
        if number is not None:
            return _truncated_decimal(number)

    raise InvalidFormat('integer', value, f"Integer (?i) placeholder expects numeric value, {type_name(value)} given")


def format_identifier(value: Any, dialect: Dialect) -> str:
    """Format a ?n value as a quoted identifier."""
    if value is None or value == '':
        raise EmptyIdentifier('identifier', value, "Empty value for identifier (?n) placeholder")
    if not isinstance(value, str):
        raise InvalidFormat(
            'identifier', value, f"Identifier (?n) placeholder expects string, {type_name(value)} given"
        )
    return dialect.quote_identifier(value)


def format_in_list(value: Any, dialect: Dialect) -> str:
    """Format a ?a value; an empty list renders as NULL so ``IN (NULL)`` stays valid."""
    if _kind_of(value, 'in-list', '?a') is not ValueKind.LIST:
        raise InvalidFormat('in-list', value, f"Value for IN (?a) placeholder should be array, {type_name(value)} given")
    if not value:
        return NULL
    return ','.join(format_string(item, dialect) for item in value)


def format_set_clause(value: Any, dialect: Dialect) -> str:
    kind = _kind_of(value, 'set-clause', '?u')
    if kind is not ValueKind.MAPPING:
        raise InvalidFormat('set-clause', value, f"SET (?u) placeholder expects mapping, {kind.value} given")
    if not value:
        raise InvalidFormat('set-clause', value, "Empty mapping for SET (?u) placeholder")
    return ','.join(
        f"{format_identifier(key, dialect)}={format_string(item, dialect)}"
        for key, item in value.items()
    )


def format_multi_row(value: Any, dialect: Dialect) -> str:
    kind = _kind_of(value, 'multi-row', '?m')
    if kind is not ValueKind.LIST:
        raise InvalidFormat(
            'multi-row', value, f"MultiRow (?m) placeholder expects array of arrays, {kind.value} given"
        )
    if not value:
        raise InvalidFormat('multi-row', value, "Empty array for MultiRow (?m) placeholder")

    rows = []
    for row in value:
        row_kind = _kind_of(row, 'multi-row', '?m')
        if row_kind is not ValueKind.LIST:
            raise InvalidFormat(
                'multi-row', row,
                f"Elements of array passed to MultiRow (?m) placeholder should be arrays; {row_kind.value} given"
            )
        rows.append(f"({format_in_list(row, dialect)})")
    return ','.join(rows)


def format_key_value_rows(value: Any, dialect: Dialect) -> str:
    """Format a ?k value: a list of mappings sharing one key set.

    The first row decides the column list and order; every other row is
    reordered to match it before being rendered as a VALUES group.
    """
    kind = _kind_of(value, 'key-value-rows', '?k')
    if kind is not ValueKind.LIST:
        raise InvalidFormat(
            'key-value-rows', value, f"Key/value (?k) placeholder expects array of mappings, {kind.value} given"
        )
    if not value:
        raise InvalidFormat('key-value-rows', value, "Empty array for key/value (?k) placeholder")

    rows = list(value)
    for row in rows:
        if _kind_of(row, 'key-value-rows', '?k') is not ValueKind.MAPPING:
            raise InvalidFormat(
                'key-value-rows', row,
                f"Rows passed to ?k placeholder should be mappings; {type_name(row)} given"
            )

    columns = list(rows[0].keys())
    if not columns:
        raise InvalidFormat('key-value-rows', rows[0], "First row passed to ?k placeholder has no columns")

    ordered = []
    for row in rows:
        if len(row) != len(columns):
            raise InconsistentRows(
                'key-value-rows', row, "Rows passed to ?k placeholder contained different numbers of elements"
            )
        try:
            ordered.append([row[column] for column in columns])
        except KeyError:
            raise InconsistentRows(
                'key-value-rows', row, "Rows passed to ?k placeholder contained different keys"
            ) from None

    column_list = ','.join(format_identifier(column, dialect) for column in columns)
    return f"({column_list}) VALUES {format_multi_row(ordered, dialect)}"


def format_raw(value: Any, dialect: Dialect) -> str:
    """Return an already parsed ?p fragment unchanged."""
    if not isinstance(value, str):
        raise InvalidFormat('raw', value, f"Parsed (?p) placeholder expects string, {type_name(value)} given")
    return str(value)


FORMATTERS: Dict[PlaceholderKind, Callable[[Any, Dialect], str]] = {
    PlaceholderKind.STRING: format_string,
    PlaceholderKind.INTEGER: format_integer,
    PlaceholderKind.IDENTIFIER: format_identifier,
    PlaceholderKind.IN_LIST: format_in_list,
    PlaceholderKind.SET_CLAUSE: format_set_clause,
    PlaceholderKind.MULTI_ROW: format_multi_row,
    PlaceholderKind.KEY_VALUE_ROWS: format_key_value_rows,
    PlaceholderKind.RAW: format_raw,
}


def format_value(kind: PlaceholderKind, value: Any, dialect: Dialect) -> str:
    """Format ``value`` with the formatter registered for ``kind``."""
    return FORMATTERS[kind](value, dialect)
