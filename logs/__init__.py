"""
=============================================================
Diagnostics for the query engine.
=============================================================

Modules:
    query_stats: Bounded statistics of executed statements
    error_handler: Error reporting in exception or fatal mode

Components:
    QueryStatistics: Ring of the most recent executed statements
    StatementStats: Query text, start time, elapsed time, driver error
    ErrorReporter: Raises or aborts on engine errors

Example:
    >>> from logs.query_stats import QueryStatistics
    >>> from logs.error_handler import ErrorReporter
    >>>
    >>> stats = QueryStatistics(limit=100)
    >>> reporter = ErrorReporter(mode='exception')
"""

__version__ = "0.1.0"
__all__ = ['QueryStatistics', 'StatementStats', 'ErrorReporter', 'ErrorMode']

from logs.error_handler import ErrorMode, ErrorReporter
from logs.query_stats import QueryStatistics, StatementStats
