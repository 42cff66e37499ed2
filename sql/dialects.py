"""
=====================================
SQL dialect quoting and escaping rules.
=====================================

A dialect tells the scanner which characters open quoted spans and how they
are escaped, and tells the formatters how to quote identifiers and escape
string literals.

Dialects:
    MYSQL: backtick identifiers, backslash escapes, pymysql literal escaping
    POSTGRESQL: double-quote identifiers, standard conforming strings
    SQLITE: double-quote identifiers, doubled-quote escaping only

Example:
    >>> from sql.dialects import get_dialect
    >>> mysql = get_dialect('mysql')
    >>> mysql.quote_identifier('order')
    '`order`'
    >>> mysql.quote_literal("O'Brien")
    "'O\\\\'Brien'"
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, FrozenSet

from pymysql.converters import escape_string


def _double_single_quotes(value: str) -> str:
    return value.replace("'", "''")


@dataclass(frozen=True)
class Dialect:
    """Quoting and escaping rules for one SQL dialect.

    Attributes:
        name: Dialect name used in configuration
        identifier_quote: Character wrapping identifiers
        quote_chars: Characters that open a quoted span in templates
        backslash_escapes: True if a backslash escapes the next character
        literal_escaper: Escape primitive for string literal contents
        hash_comments: True if ``#`` starts a comment running to end of line
        dash_comment_needs_space: True if ``--`` only starts a comment when
            followed by whitespace
    """

    name: str
    identifier_quote: str
    quote_chars: FrozenSet[str]
    backslash_escapes: bool
    literal_escaper: Callable[[str], str]
    hash_comments: bool = False
    dash_comment_needs_space: bool = False

    def escape_literal(self, value: str) -> str:
        """Escape ``value`` for embedding between single quotes."""
        return self.literal_escaper(value)

    def quote_literal(self, value: str) -> str:
        """Escape ``value`` and wrap it in single quotes."""
        return f"'{self.escape_literal(value)}'"

    def quote_identifier(self, name: str) -> str:
        """Wrap ``name`` in identifier quotes, doubling embedded quote characters."""
        q = self.identifier_quote
        return q + name.replace(q, q + q) + q

    def with_escaper(self, escaper: Callable[[str], str]) -> "Dialect":
        """Return a copy of this dialect escaping literals with ``escaper``.

        Used to bind rendering to a live connection, whose escaping may depend
        on session state (e.g. MySQL NO_BACKSLASH_ESCAPES).
        """
        return replace(self, literal_escaper=escaper)


MYSQL = Dialect(
    name='mysql',
    identifier_quote='`',
    quote_chars=frozenset("'\"`"),
    backslash_escapes=True,
    literal_escaper=escape_string,
    hash_comments=True,
    dash_comment_needs_space=True,
)

POSTGRESQL = Dialect(
    name='postgresql',
    identifier_quote='"',
    quote_chars=frozenset("'\""),
    backslash_escapes=False,
    literal_escaper=_double_single_quotes,
)

SQLITE = Dialect(
    name='sqlite',
    identifier_quote='"',
    quote_chars=frozenset("'\"`"),
    backslash_escapes=False,
    literal_escaper=_double_single_quotes,
)

DIALECTS: Dict[str, Dialect] = {
    'mysql': MYSQL,
    'mariadb': MYSQL,
    'postgresql': POSTGRESQL,
    'postgres': POSTGRESQL,
    'sqlite': SQLITE,
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name (case-insensitive).

    Args:
        name: Dialect name such as 'mysql' or 'postgresql'. A SQLAlchemy
            driver name like 'mysql+pymysql' is accepted as well.

    Returns:
        Matching Dialect

    Raises:
        ValueError: If the dialect is unknown
    """
    key = name.lower().split('+', 1)[0]
    try:
        return DIALECTS[key]
    except KeyError:
        raise ValueError(
            f"Unknown SQL dialect '{name}'. Supported: {', '.join(sorted(DIALECTS))}"
        ) from None
