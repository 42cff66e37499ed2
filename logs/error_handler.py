"""
==============================================
Error reporting for the query engine.
==============================================

The templating core returns errors as values. ErrorReporter is the single
place where such an error becomes control flow, according to the configured
error mode:

    exception - log the error and raise it (or a configured exception class
                carrying the same message) so the caller can catch it
    error     - log the error as CRITICAL and terminate via SystemExit;
                there is no silent continuation

Classes:
    ErrorMode: Supported reporting modes
    ErrorReporter: Converts SafeSQLError values into raised errors or aborts

Example:
    >>> from logs.error_handler import ErrorReporter
    >>> from sql.templater import render
    >>>
    >>> reporter = ErrorReporter(mode='exception')
    >>> sql = reporter.check(render("SELECT ?i", "abc"), caller="reports.py:42")
    Traceback (most recent call last):
    ...
    sql.errors.InvalidFormat: SafeSQL: Integer (?i) placeholder expects numeric value, string given. Error initiated in reports.py:42
"""

import logging
from enum import Enum
from typing import NoReturn, Optional, Type

from sql.errors import SafeSQLError
from sql.templater import RenderResult

logger = logging.getLogger(__name__)


class ErrorMode(str, Enum):
    """How reported errors reach the caller."""

    EXCEPTION = 'exception'
    ERROR = 'error'


class ErrorReporter:
    """Raise or abort on engine errors according to the error mode.

    Attributes:
        mode: Active ErrorMode
        exception_class: Optional exception type raised instead of the
            SafeSQLError itself in exception mode
    """

    def __init__(
        self,
        mode: str = ErrorMode.EXCEPTION.value,
        exception_class: Optional[Type[Exception]] = None,
    ):
        """Initialize the reporter.

        Args:
            mode: 'exception' or 'error'
            exception_class: Exception subclass to raise in exception mode

        Raises:
            ValueError: Unknown mode or exception_class is not an Exception type
        """
        try:
            self.mode = ErrorMode(mode)
        except ValueError:
            valid = ', '.join(m.value for m in ErrorMode)
            raise ValueError(f"Unknown error mode '{mode}'. Expected one of: {valid}") from None

        if exception_class is not None and not (
            isinstance(exception_class, type) and issubclass(exception_class, Exception)
        ):
            raise ValueError(f"exception_class must be an Exception subclass, got {exception_class!r}")
        self.exception_class = exception_class

    def report(self, error: SafeSQLError, caller: Optional[str] = None) -> NoReturn:
        """Surface ``error`` to the caller; never returns."""
        error.with_caller(caller)
        message = error.message

        if self.mode is ErrorMode.ERROR:
            message += ", thrown"
            logger.critical(message)
            raise SystemExit(message) from error

        logger.error(message)
        if self.exception_class is not None:
            raise self.exception_class(message) from error
        raise error

    def check(self, result: RenderResult, caller: Optional[str] = None) -> str:
        """Return the rendered SQL of ``result`` or report its error."""
        if result.error is not None:
            self.report(result.error, caller)
        return result.sql
