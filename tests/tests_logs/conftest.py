"""
Shared fixtures for logs/ module tests.

Key fixtures:
- stats_factory: factory for creating QueryStatistics instances
- reporter_factory: factory for creating ErrorReporter instances
"""

import pytest


@pytest.fixture
def stats_factory():
    """Factory that creates a QueryStatistics instance with a given limit."""
    def factory(limit=100):
        from logs.query_stats import QueryStatistics

        return QueryStatistics(limit=limit)

    return factory


@pytest.fixture
def reporter_factory():
    """Factory that creates an ErrorReporter; defaults to exception mode."""
    def factory(**overrides):
        from logs.error_handler import ErrorReporter

        params = dict(mode='exception', exception_class=None)
        params.update(overrides)
        return ErrorReporter(**params)

    return factory
