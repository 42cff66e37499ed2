"""
==========================
Utility Functions Package.
==========================

Database connectivity helpers and the driver the query engine executes
rendered SQL through.

Modules:
    database_utils: Connection URLs, engine creation, health checks
    driver: DatabaseDriver contract and SQLAlchemyDriver
"""

__version__ = "1.0.0"
__all__ = [
    'build_url',
    'get_connection_string',
    'create_sqlalchemy_engine',
    'check_database_available',
    'wait_for_database',
    'DatabaseDriver',
    'DriverError',
    'SQLAlchemyDriver',
]

from .database_utils import (
    build_url,
    check_database_available,
    create_sqlalchemy_engine,
    get_connection_string,
    wait_for_database,
)
from .driver import DatabaseDriver, DriverError, SQLAlchemyDriver
