"""
====================================================
Query templating package.
====================================================

Turns a template with typed placeholders plus a list of values into one
safe SQL string. All functions here are pure: nothing is executed.

The package follows a clear organization:
    - dialects.py: Quoting and escaping rules per SQL dialect
    - values.py: Closed set of value kinds formatters accept
    - scanner.py: Template tokenizer (literal text and placeholders)
    - binder.py: Positional and named binding with arity checks
    - formatters.py: One formatting rule per placeholder kind
    - templater.py: Assembly and the render/parse entry points
    - whitelist.py: Helpers restricting free-form input
    - errors.py: Error taxonomy

Example:
    >>> from sql import parse
    >>> parse("UPDATE ?n SET ?u WHERE id = ?i", 'users', {'name': 'Bob'}, 7)
    "UPDATE `users` SET `name`='Bob' WHERE id = 7"
"""

__version__ = "1.0.0"
__all__ = [
    # Rendering
    'render', 'render_named', 'parse', 'parse_named', 'RenderResult',
    # Building blocks
    'scan', 'PlaceholderKind', 'Raw', 'Dialect', 'get_dialect',
    # Whitelisting
    'white_list', 'filter_mapping', 'filter_rows',
    # Errors
    'SafeSQLError', 'MalformedTemplate', 'UnknownPlaceholderKind', 'ArityMismatch',
    'FormatError', 'InvalidFormat', 'EmptyIdentifier', 'InconsistentRows',
    'ExecutionError', 'ConnectError',
]

from .dialects import Dialect, get_dialect
from .errors import (
    ArityMismatch,
    ConnectError,
    EmptyIdentifier,
    ExecutionError,
    FormatError,
    InconsistentRows,
    InvalidFormat,
    MalformedTemplate,
    SafeSQLError,
    UnknownPlaceholderKind,
)
from .scanner import PlaceholderKind, scan
from .templater import RenderResult, parse, parse_named, render, render_named
from .values import Raw
from .whitelist import filter_mapping, filter_rows, white_list
