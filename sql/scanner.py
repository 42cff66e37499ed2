"""
==========================
Template scanner.
==========================

Splits a query template into literal text and typed placeholder segments.

Placeholders:
    ?s  string       - quoted and escaped literal
    ?i  integer      - base-10 integer text
    ?n  identifier   - quoted table/field name
    ?a  in-list      - 'a','b','c' for IN () clauses
    ?u  set-clause   - `field`='value',... for SET clauses
    ?m  multi-row    - ('a','b'),('c','d') for VALUES clauses
    ?k  key-value    - (`c1`,`c2`) VALUES ('a','b'),... from mappings
    ?p  raw          - already parsed SQL, inserted verbatim

A placeholder may carry a name (``?s:title``) for named binding. Question
marks inside quoted spans and comments (``-- ...``, ``/* ... */`` and, for
MySQL, ``# ...``) of the surrounding SQL are literal text.

Example:
    >>> from sql.scanner import scan
    >>> scan("SELECT * FROM ?n WHERE note = 'why?' AND id = ?i")
    (Literal(text='SELECT * FROM '), Placeholder(kind=<PlaceholderKind.IDENTIFIER: 'n'>, name=None, offset=14), ...)
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import FrozenSet, List, Optional, Pattern, Tuple, Union

from sql.dialects import MYSQL, Dialect
from sql.errors import MalformedTemplate, UnknownPlaceholderKind

MARKER = '?'

_NAME_RE = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')


class PlaceholderKind(Enum):
    """Closed set of placeholder kinds keyed by their sigil letter."""

    STRING = 's'
    INTEGER = 'i'
    IDENTIFIER = 'n'
    IN_LIST = 'a'
    SET_CLAUSE = 'u'
    MULTI_ROW = 'm'
    KEY_VALUE_ROWS = 'k'
    RAW = 'p'

    @property
    def label(self) -> str:
        return self.name.lower().replace('_', '-')


@dataclass(frozen=True)
class Literal:
    """Literal template text."""

    text: str


@dataclass(frozen=True)
class Placeholder:
    """A placeholder token.

    Attributes:
        kind: Placeholder kind
        name: Name for named binding, None for positional placeholders
        offset: Position of the marker in the template
    """

    kind: PlaceholderKind
    name: Optional[str]
    offset: int

    @property
    def token(self) -> str:
        token = MARKER + self.kind.value
        return f"{token}:{self.name}" if self.name else token


Segment = Union[Literal, Placeholder]


@lru_cache(maxsize=None)
def _interesting_chars(quote_chars: FrozenSet[str], hash_comments: bool) -> Pattern:
    chars = ''.join(sorted(quote_chars)) + MARKER + '-/' + ('#' if hash_comments else '')
    return re.compile('[' + re.escape(chars) + ']')


def _line_end(template: str, start: int) -> int:
    end = template.find('\n', start)
    return len(template) if end < 0 else end + 1


def _comment_end(template: str, start: int, dialect: Dialect) -> int:
    """Return the offset just past the comment opening at ``start``.

    Returns ``start + 1`` when no comment opens there (a lone ``-`` or ``/``).
    """
    ch = template[start]
    following = template[start + 1:start + 2]
    if ch == '#':
        return _line_end(template, start)
    if ch == '-' and following == '-':
        after = template[start + 2:start + 3]
        if dialect.dash_comment_needs_space and after and not after.isspace():
            return start + 1
        return _line_end(template, start)
    if ch == '/' and following == '*':
        end = template.find('*/', start + 2)
        if end < 0:
            raise MalformedTemplate(
                f"Unterminated comment starting at offset {start} in [{template}]"
            )
        return end + 2
    return start + 1


def _skip_quoted(template: str, start: int, dialect: Dialect) -> int:
    """Return the offset just past the quoted span opening at ``start``."""
    quote = template[start]
    backslash = dialect.backslash_escapes and quote != '`'
    i = start + 1
    n = len(template)
    while i < n:
        ch = template[i]
        if backslash and ch == '\\':
            i += 2
            continue
        if ch == quote:
            if i + 1 < n and template[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    raise MalformedTemplate(
        f"Unterminated {quote} quoted span starting at offset {start} in [{template}]"
    )


def scan(template: str, dialect: Dialect = MYSQL) -> Tuple[Segment, ...]:
    """Split ``template`` into Literal and Placeholder segments.

    Args:
        template: Query template
        dialect: Dialect whose quoting rules apply to literal SQL

    Returns:
        Tuple of segments in template order; adjacent literal text is merged

    Raises:
        MalformedTemplate: Unterminated quoted span or block comment
        UnknownPlaceholderKind: ``?`` followed by an unsupported letter
    """
    if not isinstance(template, str):
        raise MalformedTemplate(f"Template must be a string, {type(template).__name__} given")

    finder = _interesting_chars(dialect.quote_chars, dialect.hash_comments)
    segments: List[Segment] = []
    literal_start = 0
    pos = 0
    n = len(template)

    while True:
        match = finder.search(template, pos)
        if match is None:
            break
        i = match.start()
        ch = template[i]

        if ch in dialect.quote_chars:
            pos = _skip_quoted(template, i, dialect)
            continue
        if ch != MARKER:
            pos = _comment_end(template, i, dialect)
            continue

        sigil = template[i + 1] if i + 1 < n else ''
        if not (sigil.isascii() and sigil.isalpha()):
            pos = i + 1
            continue

        try:
            kind = PlaceholderKind(sigil)
        except ValueError:
            raise UnknownPlaceholderKind(
                f"Unknown placeholder {MARKER}{sigil} at offset {i} in [{template}]"
            ) from None

        end = i + 2
        name = None
        name_match = _NAME_RE.match(template, end)
        if name_match:
            name = name_match.group(1)
            end = name_match.end()

        if i > literal_start:
            segments.append(Literal(template[literal_start:i]))
        segments.append(Placeholder(kind, name, i))
        literal_start = pos = end

    if literal_start < n:
        segments.append(Literal(template[literal_start:]))
    return tuple(segments)


def placeholders(segments: Tuple[Segment, ...]) -> List[Placeholder]:
    """Return only the Placeholder segments, in order."""
    return [seg for seg in segments if isinstance(seg, Placeholder)]
