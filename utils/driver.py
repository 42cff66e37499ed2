"""
====================================
Database driver used by the engine.
====================================

The query engine never talks to a DB-API module directly. It relies on a
small driver contract (DatabaseDriver) for connecting, executing finished SQL
text, escaping literals and walking result sets. SQLAlchemyDriver implements
that contract over a single autocommit SQLAlchemy connection.

Classes:
    DriverError: Raised by drivers when connecting or executing fails
    DatabaseDriver: Protocol the engine depends on
    SQLAlchemyDriver: DatabaseDriver backed by SQLAlchemy

Example:
    >>> from utils.driver import SQLAlchemyDriver
    >>>
    >>> driver = SQLAlchemyDriver(drivername='sqlite', database=':memory:')
    >>> driver.connect()
    >>> result = driver.execute("SELECT 1 AS one")
    >>> driver.fetch_row(result, RESULT_ASSOC)
    {'one': 1}
"""

import logging
from typing import Any, List, Optional, Protocol, Union

from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sql.dialects import Dialect, get_dialect
from utils.database_utils import build_url, create_sqlalchemy_engine

logger = logging.getLogger(__name__)

RESULT_ASSOC = 'assoc'
RESULT_NUM = 'num'

Row = Union[dict, tuple]


class DriverError(Exception):
    """Exception raised when the driver cannot connect or execute."""
    pass


class DatabaseDriver(Protocol):
    """Contract between the query engine and a database client."""

    dialect: Dialect

    def connect(self) -> None: ...

    def execute(self, sql: str) -> Any: ...

    def escape_literal(self, value: str) -> str: ...

    def fetch_row(self, result: Any, mode: str = RESULT_ASSOC) -> Optional[Row]: ...

    def column_names(self, result: Any) -> List[str]: ...

    def affected_rows(self) -> int: ...

    def insert_id(self) -> Optional[int]: ...

    def num_rows(self, result: Any) -> int: ...

    def free(self, result: Any) -> None: ...

    def last_error(self) -> Optional[str]: ...

    def close(self) -> None: ...


def _error_text(error: SQLAlchemyError) -> str:
    # DBAPIError wraps the driver exception; its own str() appends SQL and a docs link
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error)


class SQLAlchemyDriver:
    """DatabaseDriver over one autocommit SQLAlchemy connection.

    Statements are sent with ``exec_driver_sql`` and no parameters, so the
    DB-API module performs no placeholder interpolation on the rendered SQL.

    Attributes:
        url: Connection URL
        dialect: Quoting rules matching the URL's backend
    """

    def __init__(
        self,
        url: Optional[URL] = None,
        engine: Optional[Engine] = None,
        echo: bool = False,
        **params
    ):
        """Initialize the driver.

        Args:
            url: Prebuilt URL; built from ``params`` and config when omitted
            engine: Existing engine to draw the connection from
            echo: Enable SQLAlchemy statement logging
            **params: build_url() parameters
        """
        if engine is not None:
            self.url = engine.url
        else:
            self.url = url if url is not None else build_url(**params)
        self.dialect = get_dialect(self.url.get_backend_name())
        self.echo = echo

        self._engine: Optional[Engine] = engine
        self._connection: Optional[Connection] = None
        self._last_result: Optional[CursorResult] = None
        self._last_error: Optional[str] = None

    def _get_engine(self) -> Engine:
        """Get SQLAlchemy engine."""
        if self._engine is None:
            self._engine = create_sqlalchemy_engine(self.url, echo=self.echo)
        return self._engine

    def connect(self) -> None:
        """Open the connection.

        Raises:
            DriverError: If the connection cannot be established
        """
        if self._connection is not None:
            return
        try:
            self._connection = self._get_engine().connect().execution_options(
                isolation_level='AUTOCOMMIT'
            )
        except SQLAlchemyError as e:
            self._last_error = _error_text(e)
            raise DriverError(self._last_error) from e
        logger.debug(f"Connected to {self.url.render_as_string(hide_password=True)}")

    def execute(self, sql: str) -> CursorResult:
        """Execute finished SQL text.

        Raises:
            DriverError: If not connected or the database rejects the statement
        """
        if self._connection is None:
            raise DriverError("Not connected")
        try:
            result = self._connection.exec_driver_sql(
                sql, execution_options={'no_parameters': True}
            )
        except SQLAlchemyError as e:
            self._last_error = _error_text(e)
            raise DriverError(self._last_error) from e

        self._last_error = None
        self._last_result = result
        return result

    def escape_literal(self, value: str) -> str:
        """Escape literal contents for the open connection.

        DB-API connections exposing ``escape_string`` (PyMySQL) escape
        according to session state such as NO_BACKSLASH_ESCAPES; otherwise
        the dialect primitive is used.
        """
        if self._connection is not None:
            escape = getattr(self._connection.connection.dbapi_connection, 'escape_string', None)
            if escape is not None:
                return escape(value)
        return self.dialect.escape_literal(value)

    def fetch_row(self, result: CursorResult, mode: str = RESULT_ASSOC) -> Optional[Row]:
        """Fetch the next row as a dict (RESULT_ASSOC) or tuple (RESULT_NUM).

        Returns:
            Next row, or None when the result set is exhausted or has no rows
        """
        if not result.returns_rows:
            return None
        row = result.fetchone()
        if row is None:
            return None
        if mode == RESULT_NUM:
            return tuple(row)
        return dict(row._mapping)

    def column_names(self, result: CursorResult) -> List[str]:
        if not result.returns_rows:
            return []
        return list(result.keys())

    def affected_rows(self) -> int:
        """Rows affected by the last statement, -1 when unknown."""
        if self._last_result is None:
            return -1
        return self._last_result.rowcount

    def insert_id(self) -> Optional[int]:
        """Auto-increment id generated by the last INSERT, if the backend reports one."""
        if self._last_result is None:
            return None
        return self._last_result.lastrowid

    def num_rows(self, result: CursorResult) -> int:
        """Row count reported by the DB-API cursor; -1 when the backend does not know it."""
        return result.rowcount

    def free(self, result: CursorResult) -> None:
        result.close()

    def last_error(self) -> Optional[str]:
        return self._last_error

    def close(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
