"""
===================================
Query template rendering.
===================================

Ties the scanner, binder and formatters together. ``render`` and
``render_named`` never raise for template or value problems: they return a
RenderResult holding either the SQL text or the error, and leave it to the
caller (usually the engine's ErrorReporter) to decide whether that error is
raised or treated as fatal. ``parse`` and ``parse_named`` are the raising
shortcuts.

Functions:
    assemble: Concatenate literal segments with formatted bindings
    render: Positional rendering returning a RenderResult
    render_named: Named rendering returning a RenderResult
    parse: render() that raises on error
    parse_named: render_named() that raises on error

Example:
    >>> from sql.templater import parse
    >>> parse("SELECT * FROM ?n WHERE id IN ?a", "table", [1, 2])
    "SELECT * FROM `table` WHERE id IN '1','2'"
    >>> from sql.templater import render_named
    >>> render_named("SELECT * FROM t WHERE a=?i:x OR b=?i:x", {'x': 7}).sql
    'SELECT * FROM t WHERE a=7 OR b=7'
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from sql.binder import Binding, bind_named, bind_positional
from sql.dialects import MYSQL, Dialect
from sql.errors import SafeSQLError
from sql.formatters import format_value
from sql.scanner import Literal, Segment, placeholders, scan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """Outcome of rendering a template.

    Exactly one of ``sql`` and ``error`` is set.
    """

    sql: Optional[str] = None
    error: Optional[SafeSQLError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the SQL text or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.sql


def assemble(segments: Sequence[Segment], bindings: Iterable[Binding], dialect: Dialect) -> str:
    """Build the final SQL from segments and their bound values.

    ``bindings`` must list the placeholders of ``segments`` in order, as
    produced by the binder.
    """
    values = iter(bindings)
    parts = []
    for segment in segments:
        if isinstance(segment, Literal):
            parts.append(segment.text)
            continue
        placeholder, value = next(values)
        parts.append(format_value(placeholder.kind, value, dialect))
    return ''.join(parts)


def render(
    template: str,
    *args: Any,
    dialect: Dialect = MYSQL,
    caller: Optional[str] = None,
) -> RenderResult:
    """Render ``template`` with positional arguments."""
    try:
        segments = scan(template, dialect)
        bindings = bind_positional(template, placeholders(segments), args)
        sql = assemble(segments, bindings, dialect)
    except SafeSQLError as e:
        return RenderResult(error=e.with_caller(caller))

    logger.debug(f"Rendered query: {sql}")
    return RenderResult(sql=sql)


def render_named(
    template: str,
    values: Mapping[str, Any],
    *,
    dialect: Dialect = MYSQL,
    caller: Optional[str] = None,
) -> RenderResult:
    """Render ``template`` with values looked up by placeholder name."""
    try:
        segments = scan(template, dialect)
        bindings = bind_named(template, placeholders(segments), values)
        sql = assemble(segments, bindings, dialect)
    except SafeSQLError as e:
        return RenderResult(error=e.with_caller(caller))

    logger.debug(f"Rendered query: {sql}")
    return RenderResult(sql=sql)


def parse(template: str, *args: Any, dialect: Dialect = MYSQL) -> str:
    """Render ``template`` positionally, raising SafeSQLError on failure."""
    return render(template, *args, dialect=dialect).unwrap()


def parse_named(template: str, values: Mapping[str, Any], *, dialect: Dialect = MYSQL) -> str:
    """Render ``template`` by name, raising SafeSQLError on failure."""
    return render_named(template, values, dialect=dialect).unwrap()
