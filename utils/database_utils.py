"""
==================================================
Database connectivity utilities.
==================================================

Provides connection URL building, SQLAlchemy engine creation and
availability checks for the database the query engine talks to.

Key Features:
    - Connection URL building from config or explicit parameters
    - Autocommit engine creation (the engine has no transaction management)
    - Database availability checking
    - Waiting for a database with retries

Example:
    >>> from utils.database_utils import (
    ...     check_database_available,
    ...     wait_for_database,
    ...     create_sqlalchemy_engine
    ... )
    >>>
    >>> # Check if database is available
    >>> if check_database_available(host='localhost', user='root'):
    ...     print("Database ready")
    >>>
    >>> # Wait for database with retries
    >>> wait_for_database(max_retries=5)
    >>>
    >>> # In-memory SQLite engine
    >>> engine = create_sqlalchemy_engine(drivername='sqlite', database=':memory:')
"""

import logging
import time
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import config

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Exception raised when database connection fails."""
    pass


def build_url(
    drivername: str = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    charset: str = None
) -> URL:
    """
    Build a SQLAlchemy URL, filling unspecified parts from config.

    Args:
        drivername: SQLAlchemy driver name (defaults to config)
        host: Database hostname (defaults to config)
        port: Database port (defaults to config, None for driver default)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name, or file path for SQLite (defaults to config)
        charset: Connection charset, applied to MySQL drivers only

    Returns:
        SQLAlchemy URL

    Example:
        >>> build_url(drivername='postgresql+psycopg2', host='db', user='app', database='shop')
        postgresql+psycopg2://app:***@db/shop
    """
    drivername = drivername or config.db.drivername
    database = database if database is not None else config.db_name

    if drivername.startswith('sqlite'):
        return URL.create(drivername=drivername, database=database)

    query = {}
    charset = charset if charset is not None else config.db.charset
    if drivername.startswith('mysql') and charset:
        query['charset'] = charset

    password = password if password is not None else config.db_password
    return URL.create(
        drivername=drivername,
        username=user if user is not None else config.db_user,
        password=password or None,
        host=host if host is not None else config.db_host,
        port=port if port is not None else config.db_port,
        database=database,
        query=query,
    )


def get_connection_string(**params) -> str:
    """
    Build a connection string with the password masked.

    Args:
        **params: Any build_url() parameter

    Returns:
        Connection string safe for logging
    """
    return build_url(**params).render_as_string(hide_password=True)


def create_sqlalchemy_engine(url: Optional[URL] = None, echo: bool = False, **params) -> Engine:
    """
    Create an autocommit SQLAlchemy engine.

    Args:
        url: Prebuilt URL; built from ``params`` and config when omitted
        echo: Enable SQLAlchemy statement logging
        **params: build_url() parameters

    Returns:
        Configured SQLAlchemy Engine
    """
    url = url if url is not None else build_url(**params)
    options = {'echo': echo, 'isolation_level': 'AUTOCOMMIT'}
    if not url.drivername.startswith('sqlite'):
        options['pool_pre_ping'] = True
    return create_engine(url, **options)


def check_database_available(url: Optional[URL] = None, **params) -> bool:
    """
    Check if the database accepts connections.

    Args:
        url: Prebuilt URL; built from ``params`` and config when omitted
        **params: build_url() parameters

    Returns:
        True if a connection could be opened, False otherwise
    """
    url = url if url is not None else build_url(**params)
    engine = create_sqlalchemy_engine(url)
    try:
        with engine.connect():
            return True
    except SQLAlchemyError as e:
        logger.debug(f"Database not available: {e}")
        return False
    finally:
        engine.dispose()


def wait_for_database(
    url: Optional[URL] = None,
    max_retries: int = 10,
    retry_delay: float = 2,
    **params
) -> bool:
    """
    Wait for the database to become available with retries.

    Args:
        url: Prebuilt URL; built from ``params`` and config when omitted
        max_retries: Maximum number of attempts
        retry_delay: Delay between attempts in seconds
        **params: build_url() parameters

    Returns:
        True once the database is available

    Raises:
        DatabaseConnectionError: If the database never becomes available
    """
    url = url if url is not None else build_url(**params)
    target = url.render_as_string(hide_password=True)

    logger.info(f"Waiting for database at {target}...")

    for attempt in range(1, max_retries + 1):
        if check_database_available(url):
            logger.info(f"Database is available (attempt {attempt}/{max_retries})")
            return True

        if attempt < max_retries:
            logger.warning(
                f"Database not available yet (attempt {attempt}/{max_retries}), "
                f"retrying in {retry_delay}s..."
            )
            time.sleep(retry_delay)

    error_msg = f"Database at {target} did not become available after {max_retries} attempts"
    logger.error(error_msg)
    raise DatabaseConnectionError(error_msg)
